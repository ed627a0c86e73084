# otpkit/domain/services.py
from __future__ import annotations

import base64
import hashlib
import hmac
import os
import secrets
import string

from otpkit.domain.errors import InvalidConfig

ALPHABETS: dict[str, str] = {
    "numeric": string.digits,
    "alphanumeric": string.ascii_letters + string.digits,
    "alpha": string.ascii_letters,
}

def generate_code(code_format: str = "numeric", length: int = 6) -> str:
    """
    Random code of exactly `length` characters drawn from the alphabet
    of `code_format` (numeric, alphanumeric or alpha).
    """
    alphabet = ALPHABETS.get(code_format)
    if alphabet is None:
        raise InvalidConfig(f"unknown code format: {code_format!r}")
    if isinstance(length, bool) or not isinstance(length, int) or length < 1:
        raise InvalidConfig(f"code length must be a positive integer, got {length!r}")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _sha256_salt_plus_code(salt: bytes, code: str) -> bytes:
    h = hashlib.sha256()
    h.update(salt)
    h.update(code.encode("utf-8"))
    return h.digest()


def make_code_digest(code: str) -> tuple[str, str]:
    """
    Return (salt_b64, digest_b64) where digest = SHA256(salt || code).
    Only these two ever reach a store; the code itself goes to the notifiable.
    """
    salt = os.urandom(16)
    digest = _sha256_salt_plus_code(salt, code)
    return (
        base64.b64encode(salt).decode("utf-8"),
        base64.b64encode(digest).decode("utf-8"),
    )


def verify_code_digest(code: str, salt_b64: str, digest_b64: str) -> bool:
    try:
        salt = base64.b64decode(salt_b64.encode("utf-8"), validate=True)
        expected = base64.b64decode(digest_b64.encode("utf-8"), validate=True)
    except (ValueError, TypeError):
        return False

    return hmac.compare_digest(_sha256_salt_plus_code(salt, code), expected)
