"""
security helpers:
- Argon2 password hashing via argon2-cffi
- random refresh token generation
- HMAC-SHA256 keyed hashing of refresh tokens
- JTI generation for access token identifiers
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import uuid

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

REFRESH_TOKEN_BYTES = 32

ph = PasswordHasher()

# Verified against when the user does not exist, so both failure paths cost one Argon2 verify
_DUMMY_HASH = ph.hash("botanic-garden-dummy-password")


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str | None) -> bool:
    """ Verify a plaintext password using argon2.

    A missing hash still runs a verification against a dummy hash and
    returns False.
    """
    try:
        if password_hash is None:
            ph.verify(_DUMMY_HASH, password)
            return False
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def generate_refresh_token() -> str:
    """256 random bits, base64 encoded."""
    return base64.b64encode(secrets.token_bytes(REFRESH_TOKEN_BYTES)).decode("ascii")


def keyed_hash(value: str, secret: str) -> str:
    """HMAC-SHA256 of value under secret, hex encoded."""
    return hmac.new(secret.encode("utf-8"), value.encode("utf-8"), hashlib.sha256).hexdigest()


def hashes_match(expected: str | None, actual: str) -> bool:
    if not expected:
        return False
    return hmac.compare_digest(expected, actual)


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())
