"""
Password hashing (bcrypt) and JWT access tokens (python-jose).

Tokens carry the user id in ``sub`` plus the email and display name, so a
request can be authenticated without a database round trip.
"""
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from shotlog.core.config import settings

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class TokenExpiredError(Exception):
    pass


class InvalidTokenError(Exception):
    pass


def get_password_hash(password: str) -> str:
    """Hash a password."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


def is_valid_password(password: str) -> bool:
    return bool(password) and len(password) >= settings.PASSWORD_MIN_LENGTH


def create_access_token(
    user_id: int,
    email: str,
    name: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed JWT for a user."""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode: Dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "name": name,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT, raising TokenExpiredError or InvalidTokenError."""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpiredError("Token expired") from exc
    except JWTError as exc:
        raise InvalidTokenError("Invalid token") from exc
