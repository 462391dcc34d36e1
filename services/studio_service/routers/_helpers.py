"""Shared helpers for studio routers."""

from libs.common.errors import NotFoundError
from services.studio_service.models import User
from services.studio_service.services import user_ops
from sqlalchemy.ext.asyncio import AsyncSession


async def require_existing_user(db: AsyncSession, user_id: int) -> User:
    """Tokens outlive accounts; refuse writes for a user that no longer exists."""
    user = await user_ops.find_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user
