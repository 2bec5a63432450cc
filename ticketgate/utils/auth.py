"""
JWT utilities for bearer identities.

Tokens are issued by the identity provider; this service only verifies them.
``create_access_token`` exists for local development and the seed script.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from ..config import get_settings

ROLE_HOLDER = "holder"
ROLE_ORGANIZER = "organizer"


class Principal(BaseModel):
    """Identity carried by a verified bearer token."""
    holder_id: str
    name: str = ""
    email: str = ""
    role: str = ROLE_HOLDER

    @property
    def is_organizer(self) -> bool:
        return self.role == ROLE_ORGANIZER


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Claims to encode; ``sub`` must be the holder id
        expires_delta: Optional custom expiration time

    Returns:
        The encoded JWT token
    """
    settings = get_settings()
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({"exp": expire})
    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def verify_token(token: str) -> Optional[Principal]:
    """
    Verify and decode a JWT token.

    Returns:
        Principal if the token is valid and names a subject, None otherwise
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None

    holder_id = payload.get("sub")
    if not holder_id:
        return None

    return Principal(
        holder_id=str(holder_id),
        name=payload.get("name") or "",
        email=payload.get("email") or "",
        role=payload.get("role") or ROLE_HOLDER,
    )
