"""
Bearer token verification.

Session tokens are issued by the hosted auth service (HS256, audience
"authenticated"); this module only verifies them. ``create_access_token``
mints compatible tokens for tests and local development.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from wanderlist.config import get_settings


def create_access_token(user_id: str, expires_minutes: int = 60, **claims: Any) -> str:
    """
    Create an access token shaped like the hosted auth service's.

    Args:
        user_id: The profile id, stored in ``sub``.
        expires_minutes: Lifetime of the token.
        claims: Extra claims merged into the payload.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": user_id,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
        **claims,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or has no valid subject.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    try:
        uuid.UUID(str(payload.get("sub")))
    except ValueError:
        msg = "Token subject is not a user id"
        raise jwt.InvalidTokenError(msg) from None
    return payload
