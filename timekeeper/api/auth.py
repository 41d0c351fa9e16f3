"""Bearer-token identity for incoming requests."""

import datetime
import logging
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from timekeeper.api.dependencies import get_app_settings
from timekeeper.infra.config import Settings
from timekeeper.utils import utc_now

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


class User:
    """Caller identity taken from a verified token."""

    def __init__(self, id: int, email: Optional[str] = None):
        self.id = id
        self.email = email

    def __repr__(self):
        return f"User(id={self.id}, email={self.email})"


def decode_token(token: str, settings: Settings) -> Optional[dict]:
    """
    Decode and verify a JWT.

    Returns:
        The payload, or None if the token is expired or invalid
    """
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.warning("JWT token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid JWT token: {e}")
        return None


def issue_token(user_id: int, settings: Settings, email: Optional[str] = None,
                expires_in: Optional[datetime.timedelta] = None, **claims) -> str:
    """
    Sign a token identifying ``user_id``.

    Args:
        expires_in: Lifetime of the token; it never expires when omitted
        **claims: Extra payload entries such as ``role``
    """
    payload = {"id": user_id, **claims}
    if email:
        payload["email"] = email
    if expires_in is not None:
        payload["exp"] = utc_now() + expires_in
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_app_settings),
) -> User:
    """
    Resolve the caller from the Authorization header.

    Raises:
        HTTPException: 401 if the token is missing, invalid or has no user id
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
        )

    payload = decode_token(credentials.credentials, settings)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    raw_id = payload.get("id", payload.get("sub"))
    try:
        user_id = int(raw_id)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    return User(id=user_id, email=payload.get("email"))
