from __future__ import annotations

from datetime import datetime, timezone

import httpx

from atlas.core.http.client import new_async_client, send_request
from atlas.core.http.errors import AtlasHTTPError
from atlas.core.workflow.errors import PersistenceError


class RestBookingStore:
    """Writes booking status through a PostgREST endpoint (``/rest/v1/booking_requests``)."""

    table = "booking_requests"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self._transport = transport

    def with_access_token(self, access_token: str | None) -> "RestBookingStore":
        """Copy of this store that writes on behalf of the given user session."""
        return RestBookingStore(self.base_url, self.api_key, access_token=access_token, transport=self._transport)

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    async def update_status(self, booking_id: str, status: str) -> None:
        url = f"{self.base_url}/rest/v1/{self.table}"
        body = {"status": status, "updated_at": datetime.now(timezone.utc).isoformat()}
        async with new_async_client(transport=self._transport) as client:
            try:
                response = await send_request(
                    client,
                    "PATCH",
                    url,
                    headers=self._headers(),
                    params={"id": f"eq.{booking_id}"},
                    json=body,
                )
            except AtlasHTTPError as exc:
                raise PersistenceError(f"failed to update booking {booking_id}: {exc}") from exc

        try:
            rows = response.json()
        except ValueError:
            rows = None
        if isinstance(rows, list) and not rows:
            raise PersistenceError(f"booking not found: {booking_id}")
