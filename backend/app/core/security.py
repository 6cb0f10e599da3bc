"""Security utilities: password hashing, JWT tokens and request principals."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Union
import logging
import secrets

import jwt
from jwt.exceptions import PyJWTError
from passlib.context import CryptContext
from fastapi.security import HTTPBearer

from app.core.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security = HTTPBearer(auto_error=False)

SESSION_HEADER = "x-session-id"
SESSION_ID_MAX_LENGTH = 64


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Return the token claims, or None when the token is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except PyJWTError as e:
        logger.debug(f"Rejected bearer token: {e}")
        return None
    if not payload.get("sub"):
        return None
    return payload


def mint_session_id() -> str:
    """Fresh guest session token (32 hex chars)."""
    return secrets.token_hex(16)


@dataclass(frozen=True)
class UserPrincipal:
    user_id: str
    email: Optional[str] = None
    role: str = "user"


@dataclass(frozen=True)
class GuestPrincipal:
    session_id: Optional[str] = None


Principal = Union[UserPrincipal, GuestPrincipal]
