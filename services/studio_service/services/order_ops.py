"""Design order persistence."""

from typing import Any, Optional

from libs.common.logging import get_logger
from services.studio_service.models import Order, OrderStatus
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


def _or_empty(value: Optional[Any]) -> Any:
    return {} if value is None else value


async def create_order(
    db: AsyncSession,
    *,
    user_id: int,
    total: float,
    items: list,
    selections: Optional[Any] = None,
    design: Optional[Any] = None,
    shipping_info: Optional[Any] = None,
) -> Order:
    """Persist an order. Missing optional payloads are stored as ``{}``."""
    order = Order(
        user_id=user_id,
        total=total,
        status=OrderStatus.PENDING.value,
        items=items,
        selections=_or_empty(selections),
        design=_or_empty(design),
        shipping_info=_or_empty(shipping_info),
    )
    db.add(order)
    await db.commit()
    await db.refresh(order)

    logger.info("Created order %s for user %s", order.id, user_id)
    return order


async def list_orders_for_user(db: AsyncSession, user_id: int) -> list[Order]:
    """Return the user's orders, newest first."""
    result = await db.execute(
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(desc(Order.created_at), desc(Order.id))
    )
    return list(result.scalars().all())
