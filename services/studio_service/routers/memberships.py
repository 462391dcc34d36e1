"""Membership purchase (demo activation) and lookup."""

from fastapi import APIRouter, Depends, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.datetime_utils import utc_now
from libs.common.errors import ValidationError
from libs.db.session import get_async_db
from services.studio_service.models import Membership, MembershipProvider
from services.studio_service.plans import MEMBERSHIP_PLANS, compute_expiry, get_plan
from services.studio_service.routers._helpers import require_existing_user
from services.studio_service.schemas import (
    MembershipEnvelope,
    MembershipPlanListResponse,
    MembershipPlanResponse,
    MembershipPurchaseRequest,
    MembershipResponse,
)
from services.studio_service.services import membership_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/api/memberships", tags=["memberships"])

_MAX_REFERENCE_LENGTH = Membership.transaction_id.type.length
_MAX_PROVIDER_LENGTH = Membership.provider.type.length


def _non_empty_string(value) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


@router.get("/plans", response_model=MembershipPlanListResponse)
async def list_membership_plans():
    return MembershipPlanListResponse(
        plans=[
            MembershipPlanResponse.model_validate(plan)
            for plan in MEMBERSHIP_PLANS.values()
        ]
    )


@router.get("/me", response_model=MembershipEnvelope)
async def get_my_membership(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Return the caller's membership; ``null`` when they never bought one."""
    membership = await membership_ops.get_membership(db, current_user.user_id)
    return MembershipEnvelope(
        membership=MembershipResponse.model_validate(membership) if membership else None
    )


@router.post("", response_model=MembershipEnvelope, status_code=status.HTTP_201_CREATED)
async def purchase_membership(
    payload: MembershipPurchaseRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Activate or renew a plan. No payment gateway is involved: the caller's
    paymentReference (or a generated one) is recorded as the transaction id.
    """
    if not payload.plan_id:
        raise ValidationError("planId is required")

    plan = get_plan(payload.plan_id)
    if not plan:
        raise ValidationError("Invalid membership plan selected", code="UNKNOWN_PLAN")

    reference = _non_empty_string(payload.payment_reference)
    if reference and len(reference) > _MAX_REFERENCE_LENGTH:
        raise ValidationError(
            f"paymentReference must be at most {_MAX_REFERENCE_LENGTH} characters"
        )
    transaction_id = reference or membership_ops.generate_transaction_id()

    provider = (
        payload.provider
        if isinstance(payload.provider, str) and payload.provider
        else MembershipProvider.MANUAL.value
    )
    if len(provider) > _MAX_PROVIDER_LENGTH:
        raise ValidationError(
            f"provider must be at most {_MAX_PROVIDER_LENGTH} characters"
        )

    await require_existing_user(db, current_user.user_id)

    membership = await membership_ops.upsert_membership(
        db,
        user_id=current_user.user_id,
        plan_id=plan.plan_id,
        amount=plan.amount,
        currency=plan.currency,
        transaction_id=transaction_id,
        provider=provider,
        expires_at=compute_expiry(plan, utc_now()),
        raw_payload=payload.raw_payload,
    )
    return MembershipEnvelope(membership=MembershipResponse.model_validate(membership))
