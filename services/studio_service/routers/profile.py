"""Profile of the authenticated user."""

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.errors import ConflictError, NotFoundError, ValidationError
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.studio_service.schemas import (
    MembershipResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    ProfileUser,
    UserSummary,
)
from services.studio_service.services import membership_ops, user_ops
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["profile"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Return the caller's account together with their current membership."""
    user = await user_ops.find_user_by_id(db, current_user.user_id)
    if not user:
        raise NotFoundError("User not found")

    membership = await membership_ops.get_membership(db, user.id)
    return ProfileResponse(
        user=ProfileUser(
            id=user.id,
            username=user.username,
            email=user.email,
            created_at=user.created_at,
            membership=MembershipResponse.model_validate(membership)
            if membership
            else None,
        )
    )


@router.put("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    payload: ProfileUpdateRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Rename the caller. Usernames are not unique in the schema, so the
    check against other users happens here.
    """
    username = (payload.username or "").strip()
    if not username:
        raise ValidationError("Username is required")

    existing = await user_ops.find_user_by_username(db, username)
    if existing and existing.id != current_user.user_id:
        raise ConflictError("Username already exists", code="USERNAME_TAKEN")

    user = await user_ops.update_user(
        db, current_user.user_id, username=username, email=payload.email
    )
    if not user:
        raise NotFoundError("User not found")

    logger.info("Updated profile for user %s", user.id)
    return ProfileUpdateResponse(
        message="Profile updated successfully",
        user=UserSummary.model_validate(user),
    )
