from __future__ import annotations

from typing import Any, MutableMapping, Optional

from otpkit.domain.entities import OtpRecord
from otpkit.domain.errors import StoreUnavailable
from otpkit.domain.ports.otp_store import OtpStorePort


class SessionOtpStore(OtpStorePort):
    """
    Session-backed store over a per-client mapping (e.g. `request.session`).

    Records are kept under session[session_key][identifier]. Nothing here
    expires on its own; OtpManager checks created_at on every read.
    """

    def __init__(
        self, session: MutableMapping[str, Any], *, session_key: str = "otp_"
    ) -> None:
        self._session = session
        self._session_key = session_key

    def _bucket(self) -> dict[str, dict[str, str]]:
        try:
            bucket = self._session.get(self._session_key)
        except Exception as e:  # noqa: BLE001
            raise StoreUnavailable(f"session not available: {e}") from e
        return bucket if isinstance(bucket, dict) else {}

    def _save(self, bucket: dict[str, dict[str, str]]) -> None:
        # reassign so cookie-backed sessions notice the change
        try:
            if bucket:
                self._session[self._session_key] = bucket
            else:
                self._session.pop(self._session_key, None)
        except Exception as e:  # noqa: BLE001
            raise StoreUnavailable(f"session write failed: {e}") from e

    async def get(self, identifier: str) -> Optional[OtpRecord]:
        stored = self._bucket().get(identifier)
        if not stored:
            return None
        try:
            return OtpRecord.from_mapping(stored)
        except (KeyError, ValueError, TypeError):
            await self.forget(identifier)
            return None

    async def put(self, identifier: str, record: OtpRecord, ttl_seconds: int) -> None:
        bucket = dict(self._bucket())
        bucket[identifier] = record.to_mapping()
        self._save(bucket)

    async def forget(self, identifier: str) -> None:
        bucket = dict(self._bucket())
        if bucket.pop(identifier, None) is not None:
            self._save(bucket)

    async def consume(self, identifier: str, digest: str) -> bool:
        stored = self._bucket().get(identifier)
        if not stored or stored.get("digest") != digest:
            return False
        await self.forget(identifier)
        return True
