from __future__ import annotations

from typing import Optional

import httpx

from otpkit.domain.errors import DeliveryFailed
from otpkit.domain.ports.delivery import NotificationChannelPort, OtpMessage


class HttpMailChannel(NotificationChannelPort):
    """Posts rendered OTP messages to an HTTP mail relay (`POST {base}/send`)."""

    def __init__(
        self,
        base_url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 5.0,
        send_path: str = "/send",
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._send_path = send_path if send_path.startswith("/") else f"/{send_path}"
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, *, route: str, message: OtpMessage) -> None:
        payload = {"to": route, "subject": message.subject, "body": message.body}
        try:
            resp = await self._client.post(
                f"{self._base_url}{self._send_path}", json=payload
            )
        except httpx.HTTPError as e:
            raise DeliveryFailed(f"mail relay HTTP error: {e}") from e
        if not resp.is_success:
            raise DeliveryFailed(
                f"mail relay responded {resp.status_code}: {resp.text[:200]}"
            )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
