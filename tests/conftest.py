from datetime import datetime, timezone

import pytest

from otpkit.application.otp_manager import OtpManager
from tests.fakes import FakeDelivery, FakeErroredOtpStore, FakeOtpStore, FrozenClock


@pytest.fixture()
def store():
    return FakeOtpStore()


@pytest.fixture()
def errored_store():
    return FakeErroredOtpStore()


@pytest.fixture()
def delivery():
    return FakeDelivery()


@pytest.fixture()
def clock():
    return FrozenClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def manager(store, delivery, clock):
    return OtpManager(
        store,
        delivery,
        code_format="numeric",
        length=6,
        expires_minutes=5,
        default_identifier=lambda: "203.0.113.7",
        clock=clock,
    )


@pytest.fixture()
def patch_code(monkeypatch):
    """
    Make generated codes deterministic.
    Re-monkeypatch in a test to change the value.
    """
    from otpkit.domain import services as domain_services

    monkeypatch.setattr(domain_services, "generate_code", lambda fmt, length: "483920")
    yield
