from datetime import datetime
from typing import Any, Optional, Union

from libs.common.datetime_utils import ensure_utc
from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StrictInt,
    StrictStr,
    computed_field,
    confloat,
    field_validator,
)
from services.studio_service.services.membership_ops import is_membership_active


class _UtcModel(BaseModel):
    """Response base that reports stored timestamps as UTC."""

    model_config = ConfigDict(from_attributes=True)

    @field_validator("*", mode="after")
    @classmethod
    def _as_utc(cls, value):
        if isinstance(value, datetime):
            return ensure_utc(value)
        return value


# ============================================================================
# AUTH / USER SCHEMAS
# ============================================================================


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("username must not be blank")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class UserSummary(_UtcModel):
    id: int
    username: str
    email: str


class UserResponse(UserSummary):
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


class ProfileUpdateRequest(BaseModel):
    username: Optional[str] = Field(default=None, max_length=255)
    email: Optional[EmailStr] = None


class ProfileUpdateResponse(BaseModel):
    message: str
    user: UserSummary


# ============================================================================
# MEMBERSHIP SCHEMAS
# ============================================================================


class MembershipResponse(_UtcModel):
    id: int
    user_id: int
    plan_id: str
    amount: float
    currency: str
    status: str
    transaction_id: str
    provider: str
    started_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    raw_payload: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("amount", mode="before")
    @classmethod
    def amount_as_number(cls, v):
        # Drivers may hand back decimals or strings for NUMERIC columns.
        return 0.0 if v is None else float(v)

    @computed_field
    @property
    def is_active(self) -> bool:
        return is_membership_active(self)


class MembershipPurchaseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plan_id: Optional[StrictStr] = Field(default=None, alias="planId")
    # Loosely typed: anything but a non-empty string falls back to a default.
    payment_reference: Optional[Any] = Field(default=None, alias="paymentReference")
    provider: Optional[Any] = None
    raw_payload: Optional[Any] = Field(default=None, alias="rawPayload")


class MembershipEnvelope(BaseModel):
    membership: Optional[MembershipResponse] = None


class MembershipPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    plan_id: str
    amount: float
    currency: str
    duration_days: int


class MembershipPlanListResponse(BaseModel):
    plans: list[MembershipPlanResponse]


class ProfileUser(UserResponse):
    membership: Optional[MembershipResponse] = None


class ProfileResponse(BaseModel):
    user: ProfileUser


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderCreateRequest(BaseModel):
    # JSON numbers only: no strings, booleans, NaN or Infinity.
    total: Union[StrictInt, confloat(strict=True, allow_inf_nan=False)]
    items: list[Any]
    selections: Optional[Any] = None
    design: Optional[Any] = None
    shipping_info: Optional[Any] = None


class OrderResponse(_UtcModel):
    id: int
    user_id: int
    total: float
    status: str
    items: Any
    selections: Optional[Any] = None
    design: Optional[Any] = None
    shipping_info: Optional[Any] = None
    created_at: Optional[datetime] = None


class OrderEnvelope(BaseModel):
    order: OrderResponse


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
