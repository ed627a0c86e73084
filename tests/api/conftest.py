import pytest
from fastapi.testclient import TestClient

from otpkit.main import create_app
from otpkit.presentation.dependencies import get_delivery, get_otp_store
from tests.fakes import FakeDelivery, FakeOtpStore


@pytest.fixture()
def app_and_deps():
    app = create_app()
    store = FakeOtpStore()
    delivery = FakeDelivery()

    app.dependency_overrides[get_otp_store] = lambda: store
    app.dependency_overrides[get_delivery] = lambda: delivery

    try:
        yield app, store, delivery
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def client(app_and_deps):
    app, _, _ = app_and_deps
    return TestClient(app, raise_server_exceptions=False)
