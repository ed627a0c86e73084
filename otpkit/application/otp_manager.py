from __future__ import annotations

import inspect
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import otpkit.domain.services as domain_services
from otpkit.domain.actions import OtpAction, dump_action, load_action
from otpkit.domain.entities import Notifiable, OtpRecord, OtpResult, OtpStatus
from otpkit.domain.errors import InvalidConfig, MissingIdentifier
from otpkit.domain.ports.delivery import DeliveryPort
from otpkit.domain.ports.otp_store import OtpStorePort

logger = logging.getLogger(__name__)

CodeGenerator = Callable[[str, int], str]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OtpManager:
    """
    Issues and verifies one-time codes for a single identifier.

    One instance is meant to live for one request. It never keeps a record
    between calls: every operation re-reads the store.

    Lifecycle per identifier:
        EMPTY --send--> PENDING --attempt(ok)--> PROCESSED (record gone)
        PENDING --attempt(wrong)--> PENDING
        PENDING --update--> PENDING (new code, same action)
        PENDING --clear/expiry--> EMPTY
    """

    def __init__(
        self,
        store: OtpStorePort,
        delivery: DeliveryPort,
        *,
        code_format: str = "numeric",
        length: int = 6,
        expires_minutes: int = 5,
        default_identifier: Callable[[], Any] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not isinstance(expires_minutes, int) or expires_minutes < 1:
            raise InvalidConfig(
                f"expiry must be a positive number of minutes, got {expires_minutes!r}"
            )
        self._store = store
        self._delivery = delivery
        self._code_format = code_format
        self._length = length
        self._expires_minutes = expires_minutes
        self._default_identifier = default_identifier
        self._clock = clock
        self._identifier: Optional[str] = None
        self._generator: Optional[CodeGenerator] = None

    # -- scope -----------------------------------------------------------

    def identifier(self, value: Any) -> "OtpManager":
        """Use `value` as the key for every following call on this manager."""
        key = str(value) if value is not None else ""
        if not key:
            raise MissingIdentifier("identifier cannot be empty")
        self._identifier = key
        return self

    @property
    def current_identifier(self) -> str:
        if self._identifier is None:
            if self._default_identifier is None:
                raise MissingIdentifier("no identifier set and no default resolver given")
            self.identifier(self._default_identifier())
        return self._identifier  # type: ignore[return-value]

    def use_generator(self, callback: Optional[CodeGenerator]) -> "OtpManager":
        """Route code generation through callback(format, length); None resets."""
        self._generator = callback
        return self

    def generate_otp_code(
        self, code_format: str | None = None, length: int | None = None
    ) -> str:
        code_format = code_format or self._code_format
        length = self._length if length is None else length
        if self._generator is None:
            return domain_services.generate_code(code_format, length)

        code = self._generator(code_format, length)
        if not isinstance(code, str) or not code:
            raise InvalidConfig("custom code generator must return a non-empty string")
        return code

    # -- operations ------------------------------------------------------

    async def send(self, action: OtpAction, notifiable: Notifiable) -> OtpResult:
        identifier = self.current_identifier
        payload = dump_action(action)
        code = self.generate_otp_code()
        await self._store_and_deliver(identifier, payload, code, notifiable, action)
        logger.info(
            "otp sent",
            extra={
                "identifier": identifier,
                "otp_type": payload["type"],
                "channel": notifiable.channel,
            },
        )
        return OtpResult(status=OtpStatus.SENT)

    async def attempt(self, code: str) -> OtpResult:
        identifier = self.current_identifier
        record = await self._load(identifier)
        if record is None:
            logger.info("otp attempt on empty", extra={"identifier": identifier})
            return OtpResult(status=OtpStatus.EMPTY)

        if not record.matches(code):
            logger.info("otp mismatched", extra={"identifier": identifier})
            return OtpResult(status=OtpStatus.MISMATCHED)

        # compare-and-delete so a concurrent attempt cannot process twice
        if not await self._store.consume(identifier, record.digest):
            logger.warning("otp consumed concurrently", extra={"identifier": identifier})
            return OtpResult(status=OtpStatus.EMPTY)

        action = load_action(record.action)
        result = action.process()
        if inspect.isawaitable(result):
            result = await result
        logger.info(
            "otp processed",
            extra={"identifier": identifier, "otp_type": record.action.get("type")},
        )
        return OtpResult(status=OtpStatus.PROCESSED, result=result)

    async def update(self, notifiable: Notifiable | None = None) -> OtpResult:
        """Resend a fresh code for the pending action, if there is one."""
        identifier = self.current_identifier
        record = await self._load(identifier)
        if record is None:
            return OtpResult(status=OtpStatus.EMPTY)

        action = load_action(record.action)
        code = self.generate_otp_code()
        target = notifiable or record.notifiable
        await self._store_and_deliver(identifier, record.action, code, target, action)
        logger.info(
            "otp resent",
            extra={"identifier": identifier, "channel": target.channel},
        )
        return OtpResult(status=OtpStatus.SENT)

    async def clear(self) -> None:
        await self._store.forget(self.current_identifier)

    # -- helpers ---------------------------------------------------------

    async def _store_and_deliver(
        self,
        identifier: str,
        payload: dict[str, Any],
        code: str,
        notifiable: Notifiable,
        action: OtpAction,
    ) -> None:
        record = OtpRecord.issue(
            action=payload,
            code=code,
            created_at=self._clock(),
            notifiable=notifiable,
        )
        await self._store.put(identifier, record, self._expires_minutes * 60)
        # no rollback on delivery failure: the pending record can be resent
        await self._delivery.deliver(notifiable, code, action)

    async def _load(self, identifier: str) -> Optional[OtpRecord]:
        record = await self._store.get(identifier)
        if record is None:
            return None
        if record.is_expired(self._clock(), self._expires_minutes):
            await self._store.forget(identifier)
            return None
        return record
