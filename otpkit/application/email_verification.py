from datetime import datetime, timezone
from typing import ClassVar

from pydantic import EmailStr

from otpkit.domain.actions import OtpAction, register_action


@register_action("email.verification")
class EmailVerificationOtp(OtpAction):
    """Confirms that the requester controls `email`."""

    notification_subject: ClassVar[str] = "Confirm your email address"

    email: EmailStr

    def process(self) -> dict:
        return {
            "email": self.email.strip().lower(),
            "verified_at": datetime.now(timezone.utc).isoformat(),
        }
