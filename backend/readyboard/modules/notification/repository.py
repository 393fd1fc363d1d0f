"""Repositories for the notification audit log and push subscriptions."""

import uuid
from typing import Optional

from sqlalchemy import select, delete, func, desc
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from readyboard.modules.notification.models import (
    NotificationLog,
    PushSubscription,
)


class NotificationLogRepository:
    """Append-only repository for notification logs."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append_log(
        self,
        event_id: uuid.UUID,
        channel: str,
        recipient: str,
        message: Optional[str],
        status: str,
        error_message: Optional[str] = None,
    ) -> NotificationLog:
        """Write one audit entry."""
        log = NotificationLog(
            event_id=event_id,
            channel=channel,
            recipient=recipient,
            message=message,
            status=status,
            error_message=error_message,
        )
        self.session.add(log)
        await self.session.commit()
        await self.session.refresh(log)
        return log

    async def list_logs(
        self,
        event_id: Optional[uuid.UUID] = None,
        channel: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[NotificationLog], int]:
        """List audit entries newest first, with the total count."""
        query = select(NotificationLog)
        count_query = select(func.count()).select_from(NotificationLog)

        if event_id:
            query = query.where(NotificationLog.event_id == event_id)
            count_query = count_query.where(NotificationLog.event_id == event_id)

        if channel:
            query = query.where(NotificationLog.channel == channel)
            count_query = count_query.where(NotificationLog.channel == channel)

        total_result = await self.session.execute(count_query)
        total = total_result.scalar() or 0

        query = query.order_by(desc(NotificationLog.created_at)).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all()), total


class PushSubscriptionRepository:
    """Repository for push subscriptions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert_subscription(
        self,
        endpoint: str,
        p256dh: str,
        auth: str,
        audience: str,
        user_agent: Optional[str] = None,
    ) -> None:
        """Insert a subscription, or overwrite keys and audience for a known endpoint."""
        stmt = insert(PushSubscription).values(
            id=uuid.uuid4(),
            endpoint=endpoint,
            p256dh=p256dh,
            auth=auth,
            audience=audience,
            user_agent=user_agent,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[PushSubscription.endpoint],
            set_={
                "p256dh": stmt.excluded.p256dh,
                "auth": stmt.excluded.auth,
                "audience": stmt.excluded.audience,
                "user_agent": stmt.excluded.user_agent,
                "updated_at": func.now(),
            },
        )
        await self.session.execute(stmt)
        await self.session.commit()

    async def delete_subscription(self, endpoint: str) -> bool:
        """Delete a subscription by endpoint. Deleting an unknown endpoint is a no-op."""
        result = await self.session.execute(
            delete(PushSubscription).where(PushSubscription.endpoint == endpoint)
        )
        await self.session.commit()
        return result.rowcount > 0

    async def list_subscriptions(
        self,
        audience: Optional[str] = None,
    ) -> list[PushSubscription]:
        """Current subscriptions, optionally restricted to one audience."""
        query = select(PushSubscription)

        if audience:
            query = query.where(PushSubscription.audience == audience)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_recent(self) -> list[PushSubscription]:
        """All subscriptions, newest first."""
        result = await self.session.execute(
            select(PushSubscription).order_by(desc(PushSubscription.created_at))
        )
        return list(result.scalars().all())
