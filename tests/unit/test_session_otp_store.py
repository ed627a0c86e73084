import json
from datetime import datetime, timedelta, timezone

import pytest

from otpkit.application.otp_manager import OtpManager
from otpkit.domain.entities import Notifiable, OtpRecord, OtpStatus
from otpkit.domain.errors import StoreUnavailable
from otpkit.infrastructure.session.otp_store import SessionOtpStore
from tests.fakes import FakeDelivery, FrozenClock, RegisterUserOtp

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
DEST = Notifiable(channel="mail", route="a@example.com")


def make_record(code: str = "483920") -> OtpRecord:
    return OtpRecord.issue(
        action={"type": "test.register", "data": {"name": "A"}},
        code=code,
        created_at=T0,
        notifiable=DEST,
    )


@pytest.mark.asyncio
async def test_put_get_forget_under_session_key():
    session: dict = {}
    store = SessionOtpStore(session, session_key="otp_")
    record = make_record()

    await store.put("1.2.3.4", record, ttl_seconds=300)
    assert set(session["otp_"]) == {"1.2.3.4"}
    assert session["otp_"]["1.2.3.4"]["digest"] == record.digest

    got = await store.get("1.2.3.4")
    assert got == record

    await store.forget("1.2.3.4")
    assert await store.get("1.2.3.4") is None
    # empty bucket is dropped from the session
    assert "otp_" not in session


@pytest.mark.asyncio
async def test_put_replaces_existing_record():
    session: dict = {}
    store = SessionOtpStore(session)

    await store.put("id", make_record("111111"), ttl_seconds=300)
    await store.put("id", make_record("222222"), ttl_seconds=300)

    got = await store.get("id")
    assert got.matches("222222") is True
    assert got.matches("111111") is False
    assert len(session["otp_"]) == 1


@pytest.mark.asyncio
async def test_consume_only_on_matching_digest():
    session: dict = {}
    store = SessionOtpStore(session)
    record = make_record()
    await store.put("id", record, ttl_seconds=300)

    assert await store.consume("id", make_record().digest) is False
    assert await store.get("id") is not None

    assert await store.consume("id", record.digest) is True
    assert await store.consume("id", record.digest) is False


@pytest.mark.asyncio
async def test_session_payload_holds_no_plaintext_code():
    session: dict = {}
    delivery = FakeDelivery()
    manager = OtpManager(
        SessionOtpStore(session),
        delivery,
        expires_minutes=5,
        default_identifier=lambda: "1.2.3.4",
        clock=FrozenClock(T0),
    )
    await manager.send(RegisterUserOtp(name="A"), DEST)

    stored = session["otp_"]["1.2.3.4"]
    assert "code" not in stored
    assert delivery.last_code not in json.dumps(session)

    result = await manager.attempt(delivery.last_code)
    assert result.status == OtpStatus.PROCESSED


@pytest.mark.asyncio
async def test_read_does_not_touch_session():
    session: dict = {"other": 1}
    store = SessionOtpStore(session)
    assert await store.get("missing") is None
    assert session == {"other": 1}


@pytest.mark.asyncio
async def test_unreadable_record_is_dropped():
    session: dict = {"otp_": {"id": {"code": "1"}}}
    store = SessionOtpStore(session)
    assert await store.get("id") is None
    assert "otp_" not in session


@pytest.mark.asyncio
async def test_broken_session_raises_store_unavailable():
    class BrokenSession(dict):
        def get(self, key, default=None):
            raise RuntimeError("session backend gone")

    store = SessionOtpStore(BrokenSession())
    with pytest.raises(StoreUnavailable):
        await store.get("id")


@pytest.mark.asyncio
async def test_manager_enforces_expiry_on_session_store():
    session: dict = {}
    clock = FrozenClock(T0)
    delivery = FakeDelivery()
    manager = OtpManager(
        SessionOtpStore(session),
        delivery,
        expires_minutes=5,
        default_identifier=lambda: "1.2.3.4",
        clock=clock,
    )
    await manager.send(RegisterUserOtp(name="A"), DEST)

    clock.now = T0 + timedelta(minutes=5)
    result = await manager.attempt(delivery.last_code)
    assert result.status == OtpStatus.EMPTY
    assert "otp_" not in session
