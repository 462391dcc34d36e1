"""Password hashing and bearer token issuing."""

from datetime import timedelta
from typing import Optional

from jose import jwt
from passlib.context import CryptContext

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(password, hashed_password)
    except ValueError:
        # Stored value is not a hash this context understands.
        return False


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token whose subject is the user id."""
    settings = get_settings()
    now = utc_now()
    expires_at = now + (expires_delta or timedelta(hours=settings.JWT_EXPIRES_HOURS))
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
