"""
Bearer token creation and verification.

Tokens are HS256 JWTs carrying the caller's ``email`` plus ``iat``/``exp``.
The secret is loaded from ``config.jwt_secret`` (env var: ``JWT_SECRET``).
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from pydantic import BaseModel

from config.settings import config

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenClaims(BaseModel):
    email: str
    issued_at: datetime
    expires_at: datetime


def create_token(
    email: str,
    *,
    secret: str | None = None,
    expiry_seconds: int | None = None,
    now: datetime | None = None,
) -> str:
    """Create a signed token containing ``email`` and expiry."""
    issued = now or datetime.now(timezone.utc)
    lifetime = config.jwt_expiry_seconds if expiry_seconds is None else expiry_seconds
    payload = {
        "email": email,
        "iat": issued,
        "exp": issued + timedelta(seconds=lifetime),
    }
    return jwt.encode(payload, secret or config.jwt_secret, algorithm=ALGORITHM)


def verify_token(token: str, *, secret: str | None = None) -> Optional[TokenClaims]:
    """
    Verify ``token`` and return its claims.

    Returns ``None`` for anything that is not a well-formed, correctly
    signed, unexpired token carrying an email.
    """
    if not token or not isinstance(token, str):
        return None
    try:
        payload = jwt.decode(
            token,
            secret or config.jwt_secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Rejected expired token")
        return None
    except jwt.InvalidTokenError as exc:
        logger.debug("Rejected invalid token: %s", exc)
        return None

    email = payload.get("email")
    if not isinstance(email, str) or not email:
        return None
    # A correctly signed token can still carry timestamps outside the
    # platform's datetime range.
    try:
        return TokenClaims(
            email=email,
            issued_at=datetime.fromtimestamp(payload.get("iat", 0), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (OverflowError, OSError, ValueError, TypeError, KeyError) as exc:
        logger.debug("Rejected token with unusable timestamps: %s", exc)
        return None
