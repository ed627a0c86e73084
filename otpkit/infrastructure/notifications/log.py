import logging

from otpkit.domain.ports.delivery import NotificationChannelPort, OtpMessage

logger = logging.getLogger(__name__)


class LogChannel(NotificationChannelPort):
    """Development channel: writes the message to the log instead of sending it."""

    async def send(self, *, route: str, message: OtpMessage) -> None:
        logger.info(
            "otp notification (log channel)",
            extra={"route": route, "subject": message.subject, "body": message.body},
        )
