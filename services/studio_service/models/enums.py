"""Enum definitions for studio service models."""

import enum


class OrderStatus(str, enum.Enum):
    PENDING = "pending"


class MembershipStatus(str, enum.Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class MembershipProvider(str, enum.Enum):
    MANUAL = "manual"
