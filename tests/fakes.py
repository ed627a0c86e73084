from typing import Any, Optional

from otpkit.domain.actions import OtpAction, register_action
from otpkit.domain.entities import Notifiable, OtpRecord
from otpkit.domain.errors import DeliveryFailed, StoreUnavailable


@register_action("test.register")
class RegisterUserOtp(OtpAction):
    name: str

    def process(self) -> dict:
        return {"created": self.name}


@register_action("test.async_register")
class AsyncRegisterUserOtp(OtpAction):
    name: str

    async def process(self) -> dict:
        return {"created": self.name, "async": True}


@register_action("test.exploding")
class ExplodingOtp(OtpAction):
    def process(self) -> None:
        raise RuntimeError("process blew up")


class FakeOtpStore:
    """In-memory store; keeps the serialized mapping like the real ones do."""

    def __init__(self) -> None:
        self.records: dict[str, dict[str, str]] = {}
        self.ttls: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []

    async def get(self, identifier: str) -> Optional[OtpRecord]:
        self.calls.append(("get", identifier))
        stored = self.records.get(identifier)
        return OtpRecord.from_mapping(stored) if stored else None

    async def put(self, identifier: str, record: OtpRecord, ttl_seconds: int) -> None:
        self.calls.append(("put", identifier))
        self.records[identifier] = record.to_mapping()
        self.ttls[identifier] = ttl_seconds

    async def forget(self, identifier: str) -> None:
        self.calls.append(("forget", identifier))
        self.records.pop(identifier, None)

    async def consume(self, identifier: str, digest: str) -> bool:
        self.calls.append(("consume", identifier))
        stored = self.records.get(identifier)
        if not stored or stored["digest"] != digest:
            return False
        del self.records[identifier]
        return True


class FakeErroredOtpStore(FakeOtpStore):
    async def put(self, identifier: str, record: OtpRecord, ttl_seconds: int) -> None:
        raise StoreUnavailable("Redis down")

    async def get(self, identifier: str) -> Optional[OtpRecord]:
        raise StoreUnavailable("Redis down")


class FakeRacingOtpStore(FakeOtpStore):
    """Another request consumes the record between read and consume."""

    async def consume(self, identifier: str, digest: str) -> bool:
        self.records.pop(identifier, None)
        return False


class FakeDelivery:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    async def deliver(self, notifiable: Notifiable, code: str, action: OtpAction) -> None:
        self.calls.append({"notifiable": notifiable, "code": code, "action": action})

    @property
    def last_code(self) -> str:
        return self.calls[-1]["code"]


class FakeFailingDelivery(FakeDelivery):
    async def deliver(self, notifiable: Notifiable, code: str, action: OtpAction) -> None:
        self.calls.append({"notifiable": notifiable, "code": code, "action": action})
        raise DeliveryFailed("mail relay down")


class FakeChannel:
    def __init__(self) -> None:
        self.sent: list[tuple[str, Any]] = []

    async def send(self, *, route: str, message) -> None:
        self.sent.append((route, message))


class FakeFailingChannel:
    async def send(self, *, route: str, message) -> None:
        raise DeliveryFailed("boom")


class FrozenClock:
    def __init__(self, now) -> None:
        self.now = now

    def __call__(self):
        return self.now
