"""Design orders of the authenticated user."""

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.studio_service.routers._helpers import require_existing_user
from services.studio_service.schemas import (
    OrderCreateRequest,
    OrderEnvelope,
    OrderListResponse,
    OrderResponse,
)
from services.studio_service.services import order_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/api", tags=["orders"])


@router.post("/orders", response_model=OrderEnvelope, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreateRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Place an order. Everything except total and items is stored as sent."""
    await require_existing_user(db, current_user.user_id)
    order = await order_ops.create_order(
        db,
        user_id=current_user.user_id,
        total=payload.total,
        items=payload.items,
        selections=payload.selections,
        design=payload.design,
        shipping_info=payload.shipping_info,
    )
    return OrderEnvelope(order=OrderResponse.model_validate(order))


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    orders = await order_ops.list_orders_for_user(db, current_user.user_id)
    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in orders]
    )
