from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.errors import AuthenticationError

security = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> AuthUser:
    """Verify signature and expiry and return the token's claims."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
        return AuthUser(**payload)
    except (JWTError, ValidationError):
        raise AuthenticationError()


async def get_current_user(
    token: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)]
) -> AuthUser:
    """
    Validate the bearer token and return the authenticated user.

    Stateless: the database is not consulted here, so a token for a
    deleted user still resolves and handlers answer 404 for it.
    """
    if token is None or not token.credentials:
        raise AuthenticationError("Authentication token is required")
    return decode_access_token(token.credentials)
