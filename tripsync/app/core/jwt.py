"""
Access tokens for TripSync accounts.

Tokens identify a user by phone number (``sub``) and database id
(``user_id``). The client keeps the token on the stored user profile and
sends it back as a Bearer header.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from tripsync.app.core.config import settings


def issue_user_token(user_id: int, phone: str, lifetime: Optional[timedelta] = None) -> str:
    """
    Sign an access token for a user.

    The default lifetime comes from ``ACCESS_TOKEN_EXPIRE_MINUTES``.
    """
    lifetime = lifetime or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": phone,
        "user_id": user_id,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def read_user_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the claims of a valid token, or None for bad signatures and expired tokens."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if not isinstance(claims.get("user_id"), int):
        return None
    return claims
