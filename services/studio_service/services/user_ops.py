"""User persistence. Absent rows are reported as ``None``, never raised."""

from typing import Any, Optional

from libs.common.errors import ConflictError, ValidationError
from libs.common.logging import get_logger
from services.studio_service.models import User
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute, load_only

logger = get_logger(__name__)

# Columns safe to hand to handlers that never need the password hash.
_PUBLIC_COLUMNS = (User.id, User.username, User.email, User.created_at)


async def create_user(
    db: AsyncSession,
    *,
    username: str,
    email: str,
    hashed_password: str,
) -> User:
    """Insert a user. Raises ConflictError when the email is already taken."""
    user = User(username=username, email=email, password=hashed_password)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already registered", code="EMAIL_TAKEN")
    await db.refresh(user)

    logger.info("Created user %s", user.id)
    return user


async def find_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def find_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    """Fetch a user without loading the password column."""
    result = await db.execute(
        select(User).where(User.id == user_id).options(load_only(*_PUBLIC_COLUMNS))
    )
    return result.scalar_one_or_none()


async def find_user_by_id_with_password(db: AsyncSession, user_id: int) -> Optional[User]:
    """Fetch the full row. Only the authentication flow should need this."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def find_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(
        select(User)
        .where(User.username == username)
        .options(load_only(*_PUBLIC_COLUMNS))
        .limit(1)
    )
    return result.scalar_one_or_none()


async def update_user(
    db: AsyncSession,
    user_id: int,
    *,
    username: Optional[str] = None,
    email: Optional[str] = None,
) -> Optional[User]:
    """
    Update the supplied fields in one statement.

    Raises ValidationError when no field is supplied and ConflictError when
    the new email belongs to someone else. Returns None if the user is gone.
    """
    changes: list[tuple[InstrumentedAttribute, Any]] = []
    if username:
        changes.append((User.username, username))
    if email:
        changes.append((User.email, email))

    if not changes:
        raise ValidationError("No fields to update")

    stmt = (
        update(User)
        .where(User.id == user_id)
        .values({column: value for column, value in changes})
        .returning(User)
    )
    try:
        result = await db.execute(stmt, execution_options={"populate_existing": True})
        user = result.scalar_one_or_none()
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Email already registered", code="EMAIL_TAKEN")

    return user
