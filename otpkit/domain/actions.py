from __future__ import annotations

from abc import abstractmethod
from typing import Any, Callable, ClassVar, TypeVar

from pydantic import BaseModel, ValidationError

from otpkit.domain.errors import UnknownAction

_registry: dict[str, type["OtpAction"]] = {}

A = TypeVar("A", bound=type["OtpAction"])


class OtpAction(BaseModel):
    """
    Deferred unit of work, run once after a code has been verified.

    Subclasses carry their own (JSON-serializable) fields and implement
    `process()`, which may be a plain or an async method. They must be
    registered with `register_action` so a stored record can be turned
    back into an instance on a later request.
    """

    otp_type: ClassVar[str] = ""
    notification_subject: ClassVar[str | None] = None

    @abstractmethod
    def process(self) -> Any:
        """Run the action; the return value is handed back to the caller."""


def register_action(otp_type: str) -> Callable[[A], A]:
    def decorator(cls: A) -> A:
        existing = _registry.get(otp_type)
        if existing is not None and existing is not cls:
            raise ValueError(f"otp action type already registered: {otp_type}")
        cls.otp_type = otp_type
        _registry[otp_type] = cls
        return cls

    return decorator


def dump_action(action: OtpAction) -> dict[str, Any]:
    otp_type = type(action).otp_type
    if _registry.get(otp_type) is not type(action):
        raise UnknownAction(f"{type(action).__name__} is not a registered otp action")
    return {"type": otp_type, "data": action.model_dump(mode="json")}


def load_action(payload: dict[str, Any]) -> OtpAction:
    cls = _registry.get(payload.get("type", ""))
    if cls is None:
        raise UnknownAction(f"no otp action registered as {payload.get('type')!r}")
    try:
        return cls.model_validate(payload.get("data") or {})
    except ValidationError as e:
        raise UnknownAction(f"stored payload does not fit {cls.__name__}: {e}") from e
