"""
SQLAlchemy Database Models

Storage for the Order Storage Service:
- Orders with their immutable pricing snapshot
- Append-only status change events
- Latest customer-reported payment confirmation (overwritten on resubmit)
- Last build/deploy status record

Author: Bro Bro Foods
Version: 1.0.0
"""

import enum
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator

from storefront.database import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """DateTime that always comes back timezone-aware (SQLite drops the zone)."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    PREPARING = "preparing"
    READY_TO_DELIVER = "readyToDeliver"
    OUT_FOR_DELIVERY = "outForDelivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class Order(Base):
    """
    Main Order table.

    Pricing columns are written once at creation. Status changes go through
    the events relationship; the status column mirrors the last event.
    """
    __tablename__ = "orders"

    # Primary Key
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # =========================================================================
    # ITEM & PRICING (immutable after creation)
    # =========================================================================
    plate_type_id = Column(Integer, nullable=False)
    plate_type_name = Column(String(50), nullable=False)
    price = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False)
    total_amount = Column(Integer, nullable=False)

    # =========================================================================
    # ORDER STATUS
    # =========================================================================
    status = Column(
        Enum(OrderStatus),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True
    )
    status_events = relationship(
        "StatusEvent",
        back_populates="order",
        order_by="StatusEvent.id",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    # =========================================================================
    # PAYMENT CONFIRMATION (customer-reported, last write wins)
    # =========================================================================
    payment_method_id = Column(Integer, nullable=True)
    payment_utr = Column(String(100), nullable=True)
    payment_paid_via = Column(String(50), nullable=True)
    payment_paid_at = Column(UTCDateTime(), nullable=True)
    payment_confirmation_method_id = Column(Integer, nullable=True)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(UTCDateTime(), nullable=False, default=utc_now)

    @property
    def payment_confirmation(self) -> Optional[dict[str, Any]]:
        if self.payment_utr is None:
            return None
        return {
            "utr": self.payment_utr,
            "paid_via": self.payment_paid_via,
            "paid_at": self.payment_paid_at,
            "payment_method_id": self.payment_confirmation_method_id,
        }

    def __repr__(self):
        return f"<Order #{self.id} - {self.plate_type_name} x{self.quantity} - {self.status.value}>"


class StatusEvent(Base):
    """One status change of an order. Rows are only ever inserted."""
    __tablename__ = "order_status_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    status = Column(Enum(OrderStatus), nullable=False)
    changed_at = Column(UTCDateTime(), nullable=False, default=utc_now)
    changed_by = Column(String(50), nullable=False)

    order = relationship("Order", back_populates="status_events")

    def __repr__(self):
        return f"<StatusEvent order={self.order_id} {self.status.value} by {self.changed_by}>"


class BuildStatusRecord(Base):
    """
    Last recorded build/deploy outcome.

    A single row (id=1) that is overwritten on every update.
    """
    __tablename__ = "build_status"

    id = Column(Integer, primary_key=True)
    build_succeeded = Column(Boolean, nullable=False, default=False)
    build_output = Column(Text, nullable=True)
    app_installation_succeeded = Column(Boolean, nullable=False, default=False)
    app_installation_output = Column(Text, nullable=True)
    deploy_succeeded = Column(Boolean, nullable=False, default=False)
    deploy_output = Column(Text, nullable=True)
    timestamp = Column(UTCDateTime(), nullable=False, default=utc_now)
