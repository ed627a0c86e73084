from typing import Optional, Protocol

from otpkit.domain.entities import OtpRecord


class OtpStorePort(Protocol):
    async def get(self, identifier: str) -> Optional[OtpRecord]:
        """Return the record stored under identifier, or None."""

    async def put(self, identifier: str, record: OtpRecord, ttl_seconds: int) -> None:
        """Store/replace the record. Stores without native expiry may ignore ttl."""

    async def forget(self, identifier: str) -> None:
        """Delete any record for identifier (idempotent)."""

    async def consume(self, identifier: str, digest: str) -> bool:
        """
        Atomically delete the record if its stored digest equals `digest`.
        True when this call removed it, False otherwise.
        """
