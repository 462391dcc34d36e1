"""Membership persistence: one current-state row per user, renewed in place."""

import uuid
from datetime import datetime
from typing import Any, Optional

from libs.common.datetime_utils import ensure_utc, utc_now
from libs.common.errors import ConflictError
from libs.common.logging import get_logger
from services.studio_service.models import (
    Membership,
    MembershipProvider,
    MembershipStatus,
)
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def generate_transaction_id() -> str:
    return str(uuid.uuid4())


def is_membership_active(
    membership: Optional[Membership], now: Optional[datetime] = None
) -> bool:
    """Active means status "active" and not yet expired. Never stored."""
    if membership is None:
        return False
    if membership.status != MembershipStatus.ACTIVE.value:
        return False
    expires_at = ensure_utc(membership.expires_at)
    if expires_at is None:
        return True
    return expires_at >= (now or utc_now())


def _dialect_insert(db: AsyncSession):
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


async def upsert_membership(
    db: AsyncSession,
    *,
    user_id: int,
    plan_id: str,
    amount: float,
    currency: str,
    transaction_id: str,
    expires_at: Optional[datetime],
    status: str = MembershipStatus.ACTIVE.value,
    provider: str = MembershipProvider.MANUAL.value,
    raw_payload: Optional[Any] = None,
) -> Membership:
    """
    Insert or renew the user's membership in one atomic statement.

    On renewal every field is overwritten and started_at restarts, except
    raw_payload: a renewal that carries no payload keeps the stored one.
    Concurrent calls for the same user are serialized by the unique
    user_id index; the last writer wins.
    """
    now = utc_now()
    insert = _dialect_insert(db)
    stmt = insert(Membership).values(
        user_id=user_id,
        plan_id=plan_id,
        amount=amount,
        currency=currency,
        status=status,
        transaction_id=transaction_id,
        provider=provider,
        started_at=now,
        expires_at=expires_at,
        raw_payload=raw_payload,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id"],
        set_={
            "plan_id": stmt.excluded.plan_id,
            "amount": stmt.excluded.amount,
            "currency": stmt.excluded.currency,
            "status": stmt.excluded.status,
            "transaction_id": stmt.excluded.transaction_id,
            "provider": stmt.excluded.provider,
            "started_at": stmt.excluded.started_at,
            "expires_at": stmt.excluded.expires_at,
            "raw_payload": func.coalesce(
                stmt.excluded.raw_payload, Membership.__table__.c.raw_payload
            ),
            "updated_at": stmt.excluded.updated_at,
        },
    ).returning(Membership)

    try:
        result = await db.execute(stmt, execution_options={"populate_existing": True})
        membership = result.scalar_one()
        await db.commit()
    except IntegrityError:
        # The only other unique column is transaction_id.
        await db.rollback()
        raise ConflictError(
            "Payment reference already used", code="TRANSACTION_CONFLICT"
        )

    logger.info(
        "Upserted membership for user %s: plan=%s transaction=%s",
        user_id,
        plan_id,
        transaction_id,
    )
    return membership


async def get_membership(db: AsyncSession, user_id: int) -> Optional[Membership]:
    result = await db.execute(select(Membership).where(Membership.user_id == user_id))
    return result.scalar_one_or_none()
