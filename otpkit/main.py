from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from otpkit.infrastructure.notifications.dispatcher import NotificationDispatcher
from otpkit.infrastructure.notifications.log import LogChannel
from otpkit.infrastructure.notifications.mail import HttpMailChannel
from otpkit.infrastructure.redis_cache.pool import close_redis, get_redis
from otpkit.logging import setup_logging
from otpkit.presentation.api import api
from otpkit.settings import Settings, get_settings

settings = get_settings()


def build_delivery(settings: Settings) -> tuple[NotificationDispatcher, HttpMailChannel | None]:
    """Wire the configured mail channel into a dispatcher."""
    mail_channel = None
    if settings.otp_notification == "mail":
        mail_channel = HttpMailChannel(settings.mail_base_url, timeout=settings.mail_timeout)
        channels = {"mail": mail_channel}
    else:
        channels = {"mail": LogChannel()}
    dispatcher = NotificationDispatcher(
        channels,
        expires_minutes=settings.otp_expires,
        default_subject=settings.otp_mail_subject,
    )
    return dispatcher, mail_channel


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    if settings.otp_store == "cache":
        get_redis()

    delivery, mail_channel = build_delivery(settings)
    app.state.delivery = delivery  # expose to dependencies

    try:
        yield
    finally:
        # shutdown
        if mail_channel is not None:
            await mail_channel.aclose()
        await close_redis()


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="OTP API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)
    app.include_router(api)
    return app


app = create_app()
