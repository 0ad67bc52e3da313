"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from fgd.auth.jwt import verify_token
from fgd.auth.service import get_user_by_auth_id, is_moderator
from fgd.database import get_session
from fgd.db.models import User

_bearer = HTTPBearer(auto_error=False)


async def _resolve_user(credentials: HTTPAuthorizationCredentials, db: AsyncSession) -> User:
    try:
        payload = verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = await get_user_by_auth_id(db, payload["sub"])
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    if user.is_banned:
        raise HTTPException(status_code=403, detail="Account is banned")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Verify the bearer token and return the matching profile row.

    Raises 401 without valid credentials, 404 without a profile, 403 when banned.
    """
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return await _resolve_user(credentials, db)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User | None:
    """Like get_current_user, but anonymous callers get None instead of 401."""
    if credentials is None:
        return None
    return await _resolve_user(credentials, db)


async def require_moderator(user: User = Depends(get_current_user)) -> User:
    """Reject callers who are not admins."""
    if not is_moderator(user):
        raise HTTPException(status_code=403, detail="Forbidden: Admin access required")
    return user
