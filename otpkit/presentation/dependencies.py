from fastapi import Depends, Request

from otpkit.application.otp_manager import OtpManager
from otpkit.domain.ports.delivery import DeliveryPort
from otpkit.domain.ports.otp_store import OtpStorePort
from otpkit.infrastructure.redis_cache.otp_store import RedisOtpStore
from otpkit.infrastructure.redis_cache.pool import get_redis
from otpkit.infrastructure.session.otp_store import SessionOtpStore
from otpkit.settings import get_settings


def get_otp_store(request: Request) -> OtpStorePort:
    settings = get_settings()
    if settings.otp_store == "session":
        return SessionOtpStore(request.session, session_key=settings.otp_store_key)
    return RedisOtpStore(get_redis(), key_prefix=settings.otp_store_key)


def get_delivery(request: Request) -> DeliveryPort:
    # This is set in otpkit.main lifespan()
    return request.app.state.delivery


def get_otp_manager(
    request: Request,
    store: OtpStorePort = Depends(get_otp_store),
    delivery: DeliveryPort = Depends(get_delivery),
) -> OtpManager:
    settings = get_settings()
    return OtpManager(
        store,
        delivery,
        code_format=settings.otp_format,
        length=settings.otp_length,
        expires_minutes=settings.otp_expires,
        default_identifier=lambda: request.client.host if request.client else None,
    )
