"""Static membership plan catalog."""

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict


class MembershipPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan_id: str
    amount: float
    currency: str
    duration_days: int


MEMBERSHIP_PLANS: dict[str, MembershipPlan] = {
    plan.plan_id: plan
    for plan in (
        MembershipPlan(plan_id="monthly", amount=188, currency="CNY", duration_days=30),
        MembershipPlan(plan_id="quarterly", amount=564, currency="CNY", duration_days=90),
        MembershipPlan(plan_id="half-year", amount=1128, currency="CNY", duration_days=180),
        MembershipPlan(plan_id="yearly", amount=2256, currency="CNY", duration_days=365),
    )
}


def get_plan(plan_id: Optional[str]) -> Optional[MembershipPlan]:
    if not plan_id:
        return None
    return MEMBERSHIP_PLANS.get(plan_id)


def compute_expiry(plan: MembershipPlan, now: datetime) -> datetime:
    return now + timedelta(days=plan.duration_days)
