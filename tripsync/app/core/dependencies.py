"""
Request dependencies for authenticated TripSync routes.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from tripsync.app.core.jwt import read_user_token
from tripsync.app.db.session import get_db
from tripsync.app.models.user import User

bearer_scheme = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Resolve the caller from the Bearer token.

    The token must verify and name a user that still exists and is active,
    so deleted or deactivated accounts lose access before their token expires.
    Returns the token claims (``sub`` is the phone, ``user_id`` the id).
    """
    claims = read_user_token(credentials.credentials)
    if claims is None:
        raise _unauthorized("Could not validate credentials")

    result = await db.execute(select(User.is_active).where(User.id == claims["user_id"]))
    is_active = result.scalar_one_or_none()

    if is_active is None:
        raise _unauthorized("User not found")
    if not is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return claims
