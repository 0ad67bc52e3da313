"""
Verification of access tokens issued by the external auth provider.

The provider signs HS256 tokens with a shared secret. ``sub`` carries the
provider's user id (our ``users.auth_id``) and ``aud`` is ``authenticated``.
``create_access_token`` mints compatible tokens for local development and tests.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from fgd.config import get_settings


def create_access_token(auth_id: str, email: str, role: str = "authenticated") -> str:
    """
    Create a signed access token in the provider's format.

    Args:
        auth_id: The provider user id, stored as ``users.auth_id``.
        email: The user's email address.
        role: Provider role claim.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": auth_id,
        "email": email,
        "role": role,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_access_token_expire_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or lacks a subject.
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

    if not payload.get("sub"):
        msg = "Token has no subject"
        raise jwt.InvalidTokenError(msg)
    return payload
