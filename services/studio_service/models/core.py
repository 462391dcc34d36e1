"""Studio ORM models: users, design orders and memberships."""

from datetime import datetime
from typing import Any, Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from libs.db.types import JSONType
from services.studio_service.models.enums import (
    MembershipProvider,
    MembershipStatus,
    OrderStatus,
)
from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Uniqueness of usernames is checked by the profile endpoint, not the schema.
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self):
        return f"<User {self.id} {self.email}>"


class Order(Base):
    """Design orders. ``status`` is written once and never transitioned."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    total: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    status: Mapped[str] = mapped_column(
        String(50), default=OrderStatus.PENDING.value, nullable=False
    )

    # Opaque client payloads, stored verbatim.
    items: Mapped[Any] = mapped_column(JSONType, nullable=False)
    selections: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)
    design: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)
    shipping_info: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    def __repr__(self):
        return f"<Order {self.id} user={self.user_id}>"


class Membership(Base):
    """Current-state membership record: at most one row per user."""

    __tablename__ = "memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        index=True,
        nullable=False,
    )
    plan_id: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), nullable=False)
    currency: Mapped[str] = mapped_column(String(10), default="CNY", nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=MembershipStatus.ACTIVE.value, nullable=False
    )
    # Payment reference; doubles as the idempotency key.
    transaction_id: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False
    )
    provider: Mapped[str] = mapped_column(
        String(50), default=MembershipProvider.MANUAL.value, nullable=False
    )
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    raw_payload: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    def __repr__(self):
        return f"<Membership user={self.user_id} plan={self.plan_id}>"
