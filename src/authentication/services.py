"""Session tokens: signing, verification, and revocation through Redis."""

import logging
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed

from core.redis_client import get_redis_client

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


class BlocklistUnavailable(Exception):
    """Raised when Redis blocklist cannot be checked (fail-closed)."""


class TokenBlocklist:
    """Revoked token ids, kept in Redis until the token would expire anyway."""

    PREFIX = "blocklist:token:"

    @classmethod
    def add(cls, jti: str, exp: int) -> None:
        ttl_seconds = max(1, exp - int(time.time()))
        try:
            get_redis_client().setex(f"{cls.PREFIX}{jti}", ttl_seconds, "1")
        except Exception as exc:  # pragma: no cover - network failure
            logger.error("Could not blocklist token %s: %s", jti, exc)
            raise BlocklistUnavailable("Redis unavailable while blocklisting") from exc

    @classmethod
    def contains(cls, jti: str) -> bool:
        try:
            return get_redis_client().get(f"{cls.PREFIX}{jti}") is not None
        except Exception as exc:  # pragma: no cover - network failure
            logger.error("Could not check blocklist for %s: %s", jti, exc)
            raise BlocklistUnavailable("Redis unavailable while checking blocklist") from exc


class TokenService:
    """Issue and verify the access/refresh pair that makes up a session.

    Every token carries the user's ``token_version`` as ``ver`` so that a
    sign-out on all devices invalidates tokens minted before it.
    """

    ALGORITHM = "HS256"

    @staticmethod
    def lifetime(token_type: str) -> timedelta:
        if token_type == REFRESH:
            return timedelta(hours=settings.REFRESH_TOKEN_TTL_HOURS)
        return timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES)

    @classmethod
    def generate_tokens(cls, user) -> tuple[str, str]:
        """Return a freshly signed ``(access, refresh)`` pair for ``user``."""
        issued_at = datetime.now(timezone.utc)
        return cls._sign(user, ACCESS, issued_at), cls._sign(user, REFRESH, issued_at)

    @classmethod
    def _sign(cls, user, token_type: str, issued_at: datetime) -> str:
        expires_at = issued_at + cls.lifetime(token_type)
        payload = {
            "sub": str(user.id),
            "jti": str(uuid.uuid4()),
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "type": token_type,
            "role": getattr(getattr(user, "role", None), "name", None),
            "ver": getattr(user, "token_version", 1),
        }
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=cls.ALGORITHM)

    @classmethod
    def decode_token(cls, token: str, expected_type: str | None = None) -> dict[str, Any]:
        """Verify signature and expiry; optionally insist on a token type."""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[cls.ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationFailed("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationFailed("Invalid token") from exc

        if expected_type and payload.get("type") != expected_type:
            raise AuthenticationFailed("Invalid token type")
        return payload

    @classmethod
    def revoke(cls, token: str) -> dict[str, Any]:
        """Blocklist an access token and return its payload."""
        payload = cls.decode_token(token, expected_type=ACCESS)
        TokenBlocklist.add(payload["jti"], payload["exp"])
        return payload

    @staticmethod
    def is_current(payload: dict[str, Any], user) -> bool:
        """False for tokens minted before the user's last sign-out everywhere."""
        return payload.get("ver") is not None and payload.get("ver") == user.token_version


def bearer_token(request) -> str | None:
    """The token from an ``Authorization: Bearer ...`` header, if any."""
    header = request.META.get("HTTP_AUTHORIZATION", "")
    if not header.startswith("Bearer "):
        return None
    return header.split(" ", 1)[1] or None


__all__ = [
    "ACCESS",
    "REFRESH",
    "TokenService",
    "TokenBlocklist",
    "BlocklistUnavailable",
    "bearer_token",
]
