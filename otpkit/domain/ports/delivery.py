from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from otpkit.domain.actions import OtpAction
from otpkit.domain.entities import Notifiable


@dataclass(frozen=True)
class OtpMessage:
    subject: str
    body: str


class DeliveryPort(Protocol):
    async def deliver(
        self, notifiable: Notifiable, code: str, action: OtpAction
    ) -> None:
        """Dispatch the code to notifiable. Raise DeliveryFailed on failure."""


class NotificationChannelPort(Protocol):
    async def send(self, *, route: str, message: OtpMessage) -> None:
        """Send one rendered message to a channel-specific route."""
