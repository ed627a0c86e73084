from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from otpkit.domain.services import make_code_digest, verify_code_digest


class OtpStatus(str, Enum):
    """Outcome of an OTP operation; values double as message keys."""

    SENT = "otp.sent"
    EMPTY = "otp.empty"
    MISMATCHED = "otp.mismatched"
    PROCESSED = "otp.processed"


@dataclass(frozen=True)
class OtpResult:
    status: OtpStatus
    result: Any = None


@dataclass(frozen=True)
class Notifiable:
    channel: str
    route: str

    def __post_init__(self):
        if not self.channel or not self.route:
            raise ValueError("notifiable needs both a channel and a route")


@dataclass
class OtpRecord:
    """
    Pending OTP as persisted. The code is never kept, only a salted digest
    of it, so a client-readable store (signed cookie session) leaks nothing.
    """

    action: dict[str, Any]
    salt: str
    digest: str
    created_at: datetime
    notifiable: Notifiable

    def __post_init__(self):
        if not self.salt or not self.digest:
            raise ValueError("salt and digest are required")

    @classmethod
    def issue(
        cls,
        action: dict[str, Any],
        code: str,
        created_at: datetime,
        notifiable: Notifiable,
    ) -> OtpRecord:
        if not code:
            raise ValueError("code cannot be empty")
        salt, digest = make_code_digest(code)
        return cls(
            action=action,
            salt=salt,
            digest=digest,
            created_at=created_at,
            notifiable=notifiable,
        )

    def matches(self, code: str) -> bool:
        return verify_code_digest(code, self.salt, self.digest)

    def is_expired(self, now: datetime, expires_minutes: int) -> bool:
        return now - self.created_at >= timedelta(minutes=expires_minutes)

    def to_mapping(self) -> dict[str, str]:
        """Flat str -> str mapping, suitable for a Redis hash or a session."""
        return {
            "action": json.dumps(self.action, separators=(",", ":")),
            "salt": self.salt,
            "digest": self.digest,
            "created_at": self.created_at.isoformat(),
            "notifiable": json.dumps(
                {"channel": self.notifiable.channel, "route": self.notifiable.route},
                separators=(",", ":"),
            ),
        }

    @classmethod
    def from_mapping(cls, mapping: dict[str, str]) -> OtpRecord:
        notifiable = json.loads(mapping["notifiable"])
        return cls(
            action=json.loads(mapping["action"]),
            salt=mapping["salt"],
            digest=mapping["digest"],
            created_at=datetime.fromisoformat(mapping["created_at"]),
            notifiable=Notifiable(
                channel=notifiable["channel"], route=notifiable["route"]
            ),
        )
