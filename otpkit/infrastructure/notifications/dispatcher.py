from __future__ import annotations

import logging
from typing import Mapping

from otpkit.domain.actions import OtpAction
from otpkit.domain.entities import Notifiable
from otpkit.domain.errors import DeliveryFailed
from otpkit.domain.ports.delivery import (
    DeliveryPort,
    NotificationChannelPort,
    OtpMessage,
)

logger = logging.getLogger(__name__)


def render_message(
    code: str, action: OtpAction, *, expires_minutes: int, default_subject: str
) -> OtpMessage:
    subject = type(action).notification_subject or default_subject
    unit = "minute" if expires_minutes == 1 else "minutes"
    body = (
        f"Your verification code is {code}. "
        f"It expires in {expires_minutes} {unit}."
    )
    return OtpMessage(subject=subject, body=body)


class NotificationDispatcher(DeliveryPort):
    """
    Renders the OTP message and routes it by `notifiable.channel`.
    """

    def __init__(
        self,
        channels: Mapping[str, NotificationChannelPort],
        *,
        expires_minutes: int = 5,
        default_subject: str = "Your verification code",
    ) -> None:
        self.channels = dict(channels)
        self.expires_minutes = expires_minutes
        self.default_subject = default_subject

    async def deliver(
        self, notifiable: Notifiable, code: str, action: OtpAction
    ) -> None:
        channel = self.channels.get(notifiable.channel)
        if channel is None:
            # unknown channel -> treated like a failed dispatch
            raise DeliveryFailed(f"unknown notification channel: {notifiable.channel}")

        message = render_message(
            code,
            action,
            expires_minutes=self.expires_minutes,
            default_subject=self.default_subject,
        )
        try:
            await channel.send(route=notifiable.route, message=message)
        except DeliveryFailed:
            logger.warning(
                "otp delivery failed",
                extra={"channel": notifiable.channel, "otp_type": action.otp_type},
            )
            raise
