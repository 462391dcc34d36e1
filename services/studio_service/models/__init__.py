"""Studio Service models package."""

from services.studio_service.models.core import Membership, Order, User
from services.studio_service.models.enums import (
    MembershipProvider,
    MembershipStatus,
    OrderStatus,
)

__all__ = [
    "Membership",
    "MembershipProvider",
    "MembershipStatus",
    "Order",
    "OrderStatus",
    "User",
]
