from __future__ import annotations

import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from otpkit.domain.entities import OtpRecord
from otpkit.domain.errors import StoreUnavailable
from otpkit.domain.ports.otp_store import OtpStorePort

logger = logging.getLogger(__name__)

_LUA_CONSUME = """
-- KEYS[1]: otp key
-- ARGV[1]: expected digest
local cur = redis.call('HGET', KEYS[1], 'digest')
if not cur or cur ~= ARGV[1] then
  return 0
end
redis.call('DEL', KEYS[1])
return 1
"""


class RedisOtpStore(OtpStorePort):
    """
    Cache-backed store: one hash per identifier, expired by Redis itself.
    """

    def __init__(self, redis: Redis, *, key_prefix: str = "otp_") -> None:
        self._redis = redis
        self._prefix = key_prefix

    def _key(self, identifier: str) -> str:
        return f"{self._prefix}{identifier}"

    async def get(self, identifier: str) -> Optional[OtpRecord]:
        try:
            stored = await self._redis.hgetall(self._key(identifier))
        except RedisError as e:
            raise StoreUnavailable(f"redis read failed: {e}") from e
        if not stored or "digest" not in stored:
            return None
        try:
            return OtpRecord.from_mapping(stored)
        except (KeyError, ValueError) as e:
            logger.warning(
                "dropping unreadable otp record",
                extra={"identifier": identifier, "error": str(e)},
            )
            return None

    async def put(self, identifier: str, record: OtpRecord, ttl_seconds: int) -> None:
        key = self._key(identifier)
        pipe = self._redis.pipeline(transaction=True)
        # DEL first so no field of a previous record survives
        pipe.delete(key)
        pipe.hset(key, mapping=record.to_mapping())
        pipe.expire(key, ttl_seconds)
        try:
            await pipe.execute()
        except RedisError as e:
            raise StoreUnavailable(f"redis write failed: {e}") from e

    async def forget(self, identifier: str) -> None:
        try:
            await self._redis.delete(self._key(identifier))
        except RedisError as e:
            raise StoreUnavailable(f"redis delete failed: {e}") from e

    async def consume(self, identifier: str, digest: str) -> bool:
        try:
            res = await self._redis.eval(_LUA_CONSUME, 1, self._key(identifier), digest)
        except RedisError as e:
            raise StoreUnavailable(f"redis consume failed: {e}") from e
        return int(res) == 1
