"""Schemas package."""

from services.studio_service.schemas.main import (
    AuthResponse,
    LoginRequest,
    MembershipEnvelope,
    MembershipPlanListResponse,
    MembershipPlanResponse,
    MembershipPurchaseRequest,
    MembershipResponse,
    OrderCreateRequest,
    OrderEnvelope,
    OrderListResponse,
    OrderResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    ProfileUser,
    RegisterRequest,
    UserResponse,
    UserSummary,
)

__all__ = [
    "AuthResponse",
    "LoginRequest",
    "MembershipEnvelope",
    "MembershipPlanListResponse",
    "MembershipPlanResponse",
    "MembershipPurchaseRequest",
    "MembershipResponse",
    "OrderCreateRequest",
    "OrderEnvelope",
    "OrderListResponse",
    "OrderResponse",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "ProfileUpdateResponse",
    "ProfileUser",
    "RegisterRequest",
    "UserResponse",
    "UserSummary",
]
