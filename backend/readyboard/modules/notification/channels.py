"""Notification channel implementations.

SMS goes out through Twilio, browser/desktop push through the Web Push
protocol (VAPID). Channels never raise on provider failure: every outcome is
reported in the returned result.
"""

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Protocol

from pywebpush import webpush, WebPushException
from twilio.rest import Client

from readyboard.core.config import settings
from readyboard.core.logging import log_error, log_info, log_warning, mask_endpoint, mask_phone
from readyboard.core.metrics import SMS_ATTEMPTS_TOTAL

logger = logging.getLogger(__name__)

# Message IDs returned when no real SMS is sent
DEMO_NO_SMS_ID = "demo-mode-no-sms"
DEMO_SIMULATED_ID = "demo-mode-simulated"

INVALID_PHONE_ERROR = "Invalid phone number"

# Push services answer 404/410 for subscriptions that will never work again
GONE_STATUS_CODES = frozenset({404, 410})


@dataclass
class ChannelDeliveryResult:
    """Result of a channel delivery attempt."""
    success: bool
    channel: str
    recipient: str
    message_id: Optional[str] = None
    delivered_at: Optional[datetime] = None
    error: Optional[str] = None
    response_data: Optional[dict] = None


class NotificationChannelBase(ABC):
    """Base class for notification channels."""

    channel_name: str = "base"

    @abstractmethod
    async def deliver(
        self,
        recipient: str,
        title: str,
        message: str,
        payload: Optional[dict] = None,
    ) -> ChannelDeliveryResult:
        """Deliver notification to recipient.

        Args:
            recipient: Channel-specific recipient identifier
            title: Notification title
            message: Notification message body
            payload: Additional payload data

        Returns:
            ChannelDeliveryResult with delivery status
        """
        pass

    def _create_success_result(
        self,
        recipient: str,
        message_id: Optional[str] = None,
        response_data: Optional[dict] = None,
    ) -> ChannelDeliveryResult:
        return ChannelDeliveryResult(
            success=True,
            channel=self.channel_name,
            recipient=recipient,
            message_id=message_id,
            delivered_at=datetime.now(timezone.utc),
            response_data=response_data,
        )

    def _create_failure_result(
        self,
        recipient: str,
        error: str,
    ) -> ChannelDeliveryResult:
        return ChannelDeliveryResult(
            success=False,
            channel=self.channel_name,
            recipient=recipient,
            error=error,
        )


# ==================== SMS ====================

class SmsDeliveryMode(str, Enum):
    """How the SMS channel handles a valid message."""
    REAL = "real"
    SIMULATED = "simulated"
    DISABLED = "disabled"


def normalize_phone(phone: Optional[str], country_code: str = "1") -> Optional[str]:
    """Normalize a free-form phone number to E.164.

    Returns None when fewer than 10 digits remain after stripping.
    """
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) < 10:
        return None

    if digits.startswith(country_code):
        return f"+{digits}"
    return f"+{country_code}{digits}"


def build_ready_sms(resident_name: str, room_number: str) -> str:
    """Text sent to the family when a resident is ready."""
    return (
        f"Good news! {resident_name} (Room {room_number}) is ready and waiting "
        f"for you at the front lobby. See you soon!"
    )


class SMSChannel(NotificationChannelBase):
    """SMS notification channel backed by Twilio.

    Delivery mode comes from SMS_DELIVERY_MODE: ``real`` sends through
    Twilio, ``simulated`` logs and reports success, ``disabled`` reports
    success without doing anything. Missing credentials behave like
    ``disabled``.
    """

    channel_name = "sms"

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
        mode: Optional[str] = None,
        country_code: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.account_sid = account_sid if account_sid is not None else settings.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token if auth_token is not None else settings.TWILIO_AUTH_TOKEN
        self.from_number = from_number if from_number is not None else settings.TWILIO_PHONE_NUMBER
        self.mode = SmsDeliveryMode(mode or settings.SMS_DELIVERY_MODE)
        self.country_code = country_code or settings.SMS_COUNTRY_CODE
        self.timeout = timeout if timeout is not None else settings.PROVIDER_TIMEOUT_SECONDS

        self._client: Optional[Client] = None

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    def status(self) -> dict:
        """Configuration summary for diagnostics."""
        return {
            "configured": self.configured,
            "mode": self.mode.value,
            "from_number": self.from_number or None,
        }

    async def send_ready_notification(
        self,
        phone: str,
        resident_name: str,
        room_number: str,
    ) -> ChannelDeliveryResult:
        """Tell a family member their resident is ready for pickup."""
        return await self.deliver(
            recipient=phone,
            title=f"{resident_name} is ready",
            message=build_ready_sms(resident_name, room_number),
        )

    async def deliver(
        self,
        recipient: str,
        title: str,
        message: str,
        payload: Optional[dict] = None,
    ) -> ChannelDeliveryResult:
        """Deliver notification via SMS. The message body is sent as-is."""
        to = normalize_phone(recipient, self.country_code)
        if to is None:
            SMS_ATTEMPTS_TOTAL.labels(mode=self.mode.value, outcome="invalid").inc()
            return self._create_failure_result(recipient or "", INVALID_PHONE_ERROR)

        if self.mode == SmsDeliveryMode.DISABLED or not self.configured:
            log_info(
                logger,
                "SMS not configured, skipping send",
                to=mask_phone(to),
                mode=self.mode.value,
            )
            SMS_ATTEMPTS_TOTAL.labels(mode=SmsDeliveryMode.DISABLED.value, outcome="skipped").inc()
            return self._create_success_result(to, message_id=DEMO_NO_SMS_ID)

        if self.mode == SmsDeliveryMode.SIMULATED:
            log_info(
                logger,
                "SMS simulated",
                to=mask_phone(to),
                body=message,
            )
            SMS_ATTEMPTS_TOTAL.labels(mode=self.mode.value, outcome="simulated").inc()
            return self._create_success_result(to, message_id=DEMO_SIMULATED_ID)

        try:
            loop = asyncio.get_running_loop()
            sid = await asyncio.wait_for(
                loop.run_in_executor(None, self._create_message, to, message),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            log_warning(logger, "SMS provider timed out", to=mask_phone(to), timeout=self.timeout)
            SMS_ATTEMPTS_TOTAL.labels(mode=self.mode.value, outcome="failed").inc()
            return self._create_failure_result(to, "SMS provider timeout")
        except Exception as e:
            log_error(logger, "Failed to send SMS", to=mask_phone(to), error=str(e))
            SMS_ATTEMPTS_TOTAL.labels(mode=self.mode.value, outcome="failed").inc()
            return self._create_failure_result(to, str(e) or "Failed to send SMS")

        log_info(logger, "SMS sent", to=mask_phone(to), message_sid=sid)
        SMS_ATTEMPTS_TOTAL.labels(mode=self.mode.value, outcome="sent").inc()
        return self._create_success_result(to, message_id=sid)

    def _create_message(self, to: str, body: str) -> str:
        """Send through Twilio (blocking operation)."""
        message = self.client.messages.create(
            body=body,
            from_=self.from_number,
            to=to,
        )
        return message.sid


# ==================== Web Push ====================

class PushTarget(Protocol):
    """What the push channel needs from a subscription record."""
    endpoint: str
    p256dh: str
    auth: str


@dataclass
class PushPayload:
    """Notification shown by the service worker."""
    title: str
    body: str
    tag: Optional[str] = None
    data: dict = field(default_factory=dict)

    def to_json(self) -> str:
        payload = {"title": self.title, "body": self.body, "data": self.data}
        if self.tag:
            payload["tag"] = self.tag
        return json.dumps(payload)


@dataclass
class PushDeliveryResult:
    """Result of one push delivery."""
    success: bool
    endpoint: str
    gone: bool = False
    status_code: Optional[int] = None
    error: Optional[str] = None


class PushChannel:
    """Web Push channel signing payloads with the server's VAPID key."""

    channel_name = "push"

    def __init__(
        self,
        vapid_private_key: Optional[str] = None,
        vapid_subject: Optional[str] = None,
        ttl: Optional[int] = None,
        urgency: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.vapid_private_key = (
            vapid_private_key if vapid_private_key is not None else settings.VAPID_PRIVATE_KEY
        )
        self.vapid_subject = vapid_subject or settings.VAPID_SUBJECT
        self.ttl = ttl if ttl is not None else settings.PUSH_TTL_SECONDS
        self.urgency = urgency or settings.PUSH_URGENCY
        self.timeout = timeout if timeout is not None else settings.PROVIDER_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return bool(self.vapid_private_key)

    async def send(
        self,
        subscription: PushTarget,
        payload: PushPayload,
    ) -> PushDeliveryResult:
        """Deliver ``payload`` to one subscription."""
        endpoint = subscription.endpoint

        if not self.configured:
            return PushDeliveryResult(
                success=False,
                endpoint=endpoint,
                error="Web push not configured",
            )

        try:
            loop = asyncio.get_running_loop()
            await asyncio.wait_for(
                loop.run_in_executor(None, self._send_webpush, subscription, payload.to_json()),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            log_warning(logger, "Push service timed out", endpoint=mask_endpoint(endpoint))
            return PushDeliveryResult(
                success=False,
                endpoint=endpoint,
                error="Push service timeout",
            )
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else None
            gone = status_code in GONE_STATUS_CODES
            if gone:
                log_warning(
                    logger,
                    "Push subscription gone",
                    endpoint=mask_endpoint(endpoint),
                    status_code=status_code,
                )
            return PushDeliveryResult(
                success=False,
                endpoint=endpoint,
                gone=gone,
                status_code=status_code,
                error=str(e),
            )
        except Exception as e:
            return PushDeliveryResult(success=False, endpoint=endpoint, error=str(e))

        return PushDeliveryResult(success=True, endpoint=endpoint, status_code=201)

    def _send_webpush(self, subscription: PushTarget, data: str) -> None:
        """Encrypt and POST the payload (blocking operation)."""
        webpush(
            subscription_info={
                "endpoint": subscription.endpoint,
                "keys": {
                    "p256dh": subscription.p256dh,
                    "auth": subscription.auth,
                },
            },
            data=data,
            vapid_private_key=self.vapid_private_key,
            # pywebpush adds aud/exp to the claims dict, so pass a fresh one
            vapid_claims={"sub": self.vapid_subject},
            ttl=self.ttl,
            headers={"Urgency": self.urgency},
            timeout=self.timeout,
        )
