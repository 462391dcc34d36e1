"""Registration and login."""

from fastapi import APIRouter, Depends, status
from libs.auth.security import create_access_token, hash_password, verify_password
from libs.common.errors import AuthenticationError, ConflictError
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.studio_service.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from services.studio_service.services import user_ops
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["auth"])


@router.post(
    "/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """Create an account and return a bearer token for it."""
    if await user_ops.find_user_by_email(db, payload.email):
        raise ConflictError("Email already registered", code="EMAIL_TAKEN")

    user = await user_ops.create_user(
        db,
        username=payload.username,
        email=payload.email,
        hashed_password=hash_password(payload.password),
    )
    return AuthResponse(
        token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_async_db),
):
    user = await user_ops.find_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password):
        logger.info("Rejected login attempt")
        raise AuthenticationError("Invalid credentials", code="INVALID_CREDENTIALS")

    return AuthResponse(
        token=create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )
