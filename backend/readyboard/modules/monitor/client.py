"""HTTP client for the board API."""

from typing import Optional

import httpx

from readyboard.core.config import settings


class BoardAPIError(Exception):
    """Raised when the board API cannot be read."""
    pass


class BoardClient:
    """Fetch today's events from the board API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.BOARD_API_URL).rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def fetch_todays_events(self) -> list[dict]:
        """Fetch today's events with resident details.

        Returns:
            list[dict]: Events as returned by ``GET /events``

        Raises:
            BoardAPIError: If the request fails or returns a non-list body
        """
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(
                    f"{self.base_url}/events",
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            raise BoardAPIError(f"Failed to fetch events: {e}") from e

        if response.status_code != 200:
            raise BoardAPIError(f"Failed to fetch events: {response.status_code}")

        data = response.json()
        if not isinstance(data, list):
            raise BoardAPIError("Unexpected events payload")
        return data
