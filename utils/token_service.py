"""
Token service: credential checks, access/refresh token issuance and
refresh-token rotation.

- Access tokens are HS256 JWTs carrying `name` (the user's email, the only
  identity claim) and `role`, plus iss/aud/iat/exp/jti.
- Refresh tokens are 256 random bits, base64 encoded. The plaintext goes to
  the caller once; only its HMAC-SHA256 is stored on the user row.
- Rotation is a compare-and-swap UPDATE on the stored hash, so of two
  concurrent refreshes with the same token exactly one succeeds.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping

import jwt
from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate
from sqlalchemy import update

from models.user import Role, User
from utils.exceptions import AuthenticationError
from utils.security import (
    generate_jti,
    generate_refresh_token,
    hashes_match,
    keyed_hash,
    verify_password,
)

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_LIFETIME = timedelta(hours=1)
REFRESH_TOKEN_LIFETIME = timedelta(days=7)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH = "Invalid access token or refresh token"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class TokenConfig:
    signing_key: str
    issuer: str
    audience: str
    refresh_token_secret: str
    access_token_lifetime: timedelta = ACCESS_TOKEN_LIFETIME
    refresh_token_lifetime: timedelta = REFRESH_TOKEN_LIFETIME

    def __post_init__(self):
        for name in ("signing_key", "issuer", "audience", "refresh_token_secret"):
            if not getattr(self, name):
                raise ValueError(f"TokenConfig.{name} must be set")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "TokenConfig":
        """Build from a Flask config (or any mapping with the same keys)."""
        return cls(
            signing_key=config["JWT_KEY"],
            issuer=config["JWT_ISSUER"],
            audience=config["JWT_AUDIENCE"],
            refresh_token_secret=config["REFRESH_TOKEN_SECRET"],
            access_token_lifetime=config.get("ACCESS_TOKEN_EXPIRES", ACCESS_TOKEN_LIFETIME),
            refresh_token_lifetime=config.get("REFRESH_TOKEN_EXPIRES", REFRESH_TOKEN_LIFETIME),
        )


@dataclass(frozen=True)
class AccessClaims:
    subject: str
    role: Role


class AccessClaimsSchema(Schema):
    """Validates a decoded JWT payload into AccessClaims."""

    class Meta:
        # registered claims (iss, aud, exp, ...) are checked by PyJWT
        unknown = EXCLUDE

    subject = fields.Email(required=True, data_key="name")
    role = fields.String(required=True, validate=validate.OneOf([r.value for r in Role]))

    @post_load
    def make_claims(self, data, **kwargs):
        return AccessClaims(subject=data["subject"].lower(), role=Role(data["role"]))


access_claims_schema = AccessClaimsSchema()


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": self.token_type,
            "expires_in": self.expires_in,
        }


class TokenService:
    def __init__(self, config: TokenConfig, storage, now: Callable[[], datetime] | None = None):
        self._config = config
        self._storage = storage
        self._now = now or _utcnow

    @property
    def config(self) -> TokenConfig:
        return self._config

    def validate_credentials(self, email: str, password: str) -> User:
        """
        Return the user owning (email, password). Unknown email and wrong
        password fail with the same AuthenticationError and the same cost.
        """
        session = self._storage.get_session()
        user = session.query(User).filter(User.email == email.strip().lower()).first()
        if not verify_password(password, user.password_hash if user else None):
            logger.info("Rejected login attempt for %s", email)
            raise AuthenticationError(INVALID_CREDENTIALS)
        return user

    def issue_tokens(self, user: User) -> TokenPair:
        """Mint a token pair and overwrite the user's stored refresh token."""
        refresh_plain = generate_refresh_token()
        user.refresh_token_hash = self._hash(refresh_plain)
        user.refresh_token_expires_at = self._now() + self._config.refresh_token_lifetime
        self._storage.new(user)
        self._storage.save()
        logger.info("Issued tokens for user %s", user.id)
        return self._pair(user, refresh_plain)

    def refresh_tokens(self, expired_access_token: str, presented_refresh_token: str) -> TokenPair:
        """
        Exchange an access token (expiry not checked) plus the matching
        refresh token for a new pair. The presented refresh token is
        invalidated on success.
        """
        claims = self._decode(expired_access_token, verify_exp=False)

        session = self._storage.get_session()
        user = session.query(User).filter(User.email == claims.subject).first()
        if user is None:
            self._reject("no user for token subject")
        if not user.refresh_token_hash or user.refresh_token_expires_at is None:
            self._reject("user %s holds no refresh token", user.id)

        presented_hash = self._hash(presented_refresh_token)
        if not hashes_match(user.refresh_token_hash, presented_hash):
            self._reject("refresh token mismatch for user %s", user.id)
        if _as_utc(user.refresh_token_expires_at) <= self._now():
            self._reject("expired refresh token for user %s", user.id)

        new_plain = generate_refresh_token()
        result = session.execute(
            update(User)
            .where(User.id == user.id, User.refresh_token_hash == presented_hash)
            .values(
                refresh_token_hash=self._hash(new_plain),
                refresh_token_expires_at=self._now() + self._config.refresh_token_lifetime,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self._storage.rollback()
            self._reject("refresh token for user %s was rotated concurrently", user.id)
        self._storage.save()
        session.refresh(user)

        logger.info("Rotated refresh token for user %s", user.id)
        return self._pair(user, new_plain)

    def verify_access_token(self, token: str) -> AccessClaims:
        """Full validation of a bearer token, expiry included."""
        return self._decode(token, verify_exp=True)

    def revoke_refresh_token(self, user: User) -> None:
        user.refresh_token_hash = None
        user.refresh_token_expires_at = None
        self._storage.new(user)
        self._storage.save()
        logger.info("Revoked refresh token for user %s", user.id)

    def _hash(self, refresh_plain: str) -> str:
        return keyed_hash(refresh_plain, self._config.refresh_token_secret)

    def _pair(self, user: User, refresh_plain: str) -> TokenPair:
        return TokenPair(
            access_token=self._create_access_token(user),
            refresh_token=refresh_plain,
            expires_in=int(self._config.access_token_lifetime.total_seconds()),
        )

    def _create_access_token(self, user: User) -> str:
        now = self._now()
        payload = {
            "name": user.email,
            "role": Role(user.role).value,
            "iss": self._config.issuer,
            "aud": self._config.audience,
            "iat": now,
            "exp": now + self._config.access_token_lifetime,
            "jti": generate_jti(),
        }
        return jwt.encode(payload, self._config.signing_key, algorithm=JWT_ALGORITHM)

    def _decode(self, token: str, verify_exp: bool) -> AccessClaims:
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")
        if header.get("alg") != JWT_ALGORITHM:
            logger.warning("Rejected token signed with %r", header.get("alg"))
            raise AuthenticationError("Invalid token")

        try:
            payload = jwt.decode(
                token,
                self._config.signing_key,
                algorithms=[JWT_ALGORITHM],
                audience=self._config.audience,
                issuer=self._config.issuer,
                options={"verify_exp": verify_exp, "require": ["exp", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired")
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected token: %s", exc)
            raise AuthenticationError("Invalid token")

        try:
            return access_claims_schema.load(payload)
        except ValidationError:
            raise AuthenticationError("Invalid token claims")

    @staticmethod
    def _reject(reason: str, *args):
        logger.warning("Refresh rejected: " + reason, *args)
        raise AuthenticationError(INVALID_REFRESH)
