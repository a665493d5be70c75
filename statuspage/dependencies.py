"""
dependencies.py
---------------
FastAPI dependency injection functions for authentication, authorisation and
the real-time broadcaster.

Flow:
  1. OAuth2PasswordBearer extracts the Bearer token from the Authorization header.
  2. decode_access_token validates and parses the JWT (no DB round-trip).
  3. get_current_user fetches the full User record from the DB, verifying the
     token's sub (user_id) and org_id against persisted data.
  4. get_current_admin layers a role check on top of get_current_user.

The org_id embedded in the JWT scopes every DB query and every broadcast, so
a user can neither read nor notify another organization.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.core.logging import get_logger
from statuspage.core.security import decode_access_token
from statuspage.db.session import get_db
from statuspage.models.user import User, UserRole
from statuspage.realtime.broadcaster import EventBroadcaster

logger = get_logger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Decode the JWT, then load and return the full User from the database.
    Raises 401 if the token is invalid or the user no longer exists.
    """
    try:
        payload = decode_access_token(token)
    except JWTError as exc:
        logger.warning("JWT decode failed", error=str(exc))
        raise _CREDENTIALS_EXCEPTION
    user_id = payload.get("sub")
    org_id = payload.get("org_id")
    if not user_id or not org_id:
        raise _CREDENTIALS_EXCEPTION

    # Always re-verify against DB so removed users are rejected
    result = await db.execute(
        select(User).where(User.id == user_id, User.organization_id == org_id)
    )
    user = result.scalar_one_or_none()

    if user is None:
        logger.warning("User from valid JWT not found in DB", user_id=user_id)
        raise _CREDENTIALS_EXCEPTION

    return user


async def get_current_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """
    Extends get_current_user with an admin role check.
    Raises 403 if the authenticated user is not an admin.
    """
    if current_user.role != UserRole.admin.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Requires admin role",
        )
    return current_user


def get_broadcaster(request: Request) -> EventBroadcaster:
    """The process-wide broadcaster created in main.create_application()."""
    return request.app.state.realtime.broadcaster
