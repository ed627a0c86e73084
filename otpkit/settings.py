from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    log_level: str = "INFO"

    # Infra
    redis_url: str = "redis://redis:6379/0"
    redis_socket_timeout: float = 2.0
    mail_base_url: str = "http://smtp-mock:8025"
    mail_timeout: float = 5.0
    session_secret: str = "change-me"

    # OTP policy
    otp_store: Literal["cache", "session"] = "cache"
    otp_store_key: str = "otp_"
    otp_format: Literal["numeric", "alphanumeric", "alpha"] = "numeric"
    otp_length: int = 6
    otp_expires: int = 5  # minutes
    otp_notification: Literal["mail", "log"] = "mail"
    otp_mail_subject: str = "Your verification code"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
