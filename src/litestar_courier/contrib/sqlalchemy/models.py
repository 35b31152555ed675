"""SQLAlchemy 2.0 async models for courier records."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from litestar_courier.enums import (
    PaymentRecordStatus,
    PaymentStatus,
    PaymentType,
    ShipmentStatus,
    status_label,
)


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


class Base(DeclarativeBase):
    """Base class for all courier models."""


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )


class UserModel(TimestampMixin, Base):
    """Account that owns shipments, notifications and payments."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255), unique=True)


class LocationModel(TimestampMixin, Base):
    """Named postal address used as shipment origin or destination."""

    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    street: Mapped[str] = mapped_column(String(255))
    city: Mapped[str] = mapped_column(String(255))
    state: Mapped[str] = mapped_column(String(255), default="")
    postal_code: Mapped[str] = mapped_column(String(20), default="")
    country: Mapped[str] = mapped_column(String(100))
    latitude: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 8), nullable=True, default=None
    )
    longitude: Mapped[Decimal | None] = mapped_column(
        Numeric(11, 8), nullable=True, default=None
    )

    @property
    def full_address(self) -> str:
        parts = [
            self.street,
            self.city,
            self.state,
            self.postal_code,
            self.country,
        ]
        return ", ".join(part for part in parts if part)


class ShipmentModel(TimestampMixin, Base):
    """Shipment record; status changes only through ShipmentFlow."""

    __tablename__ = "shipments"
    __table_args__ = (
        Index("ix_shipments_status", "status"),
        Index("ix_shipments_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    tracking_id: Mapped[str] = mapped_column(
        String(36), unique=True, index=True
    )
    sender_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), index=True
    )

    recipient_name: Mapped[str] = mapped_column(String(255))
    recipient_phone: Mapped[str] = mapped_column(String(20))
    recipient_email: Mapped[str | None] = mapped_column(
        String(255), nullable=True, default=None
    )
    recipient_address: Mapped[str] = mapped_column(Text)

    origin_location_id: Mapped[int] = mapped_column(ForeignKey("locations.id"))
    destination_location_id: Mapped[int] = mapped_column(
        ForeignKey("locations.id")
    )

    description: Mapped[str] = mapped_column(String(1000))
    weight: Mapped[Decimal] = mapped_column(Numeric(8, 2))
    dimensions: Mapped[str | None] = mapped_column(
        String(100), nullable=True, default=None
    )
    declared_value: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2), nullable=True, default=None
    )

    service_type: Mapped[str] = mapped_column(String(20))
    status: Mapped[str] = mapped_column(
        String(32), default=ShipmentStatus.PENDING
    )

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    payment_status: Mapped[str] = mapped_column(
        String(20), default=PaymentStatus.PENDING
    )

    pickup_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    delivery_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    estimated_delivery: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    # Loaded explicitly with selectinload(); appended to by inserting rows.
    history: Mapped[list[ShipmentHistoryModel]] = relationship(
        back_populates="shipment",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="raise",
        order_by=lambda: (
            ShipmentHistoryModel.created_at.desc(),
            ShipmentHistoryModel.id.desc(),
        ),
    )

    @property
    def status_label(self) -> str:
        return status_label(self.status)


class ShipmentHistoryModel(Base):
    """Append-only status change entry."""

    __tablename__ = "shipment_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    shipment_id: Mapped[int] = mapped_column(
        ForeignKey("shipments.id", ondelete="CASCADE"), index=True
    )
    status: Mapped[str] = mapped_column(String(32))
    location: Mapped[str | None] = mapped_column(
        String(255), nullable=True, default=None
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    updated_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        default=None,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    shipment: Mapped[ShipmentModel] = relationship(
        back_populates="history", lazy="raise"
    )

    @property
    def status_label(self) -> str:
        return status_label(self.status)


class NotificationModel(Base):
    """Per-user informational record with unread/read state."""

    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_read", "user_id", "read_at"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE")
    )
    type: Mapped[str] = mapped_column(String(20))
    title: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text)
    data: Mapped[dict[str, Any] | None] = mapped_column(
        JSON, nullable=True, default=None
    )
    action_url: Mapped[str | None] = mapped_column(
        String(512), nullable=True, default=None
    )
    action_text: Mapped[str | None] = mapped_column(
        String(255), nullable=True, default=None
    )
    read_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    @property
    def is_unread(self) -> bool:
        return self.read_at is None


class PaymentRecordModel(TimestampMixin, Base):
    """One attempt to collect payment for a shipment."""

    __tablename__ = "payment_history"
    __table_args__ = (
        Index("ix_payment_history_shipment_status", "shipment_id", "status"),
        Index("ix_payment_history_user_status", "user_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    shipment_id: Mapped[int] = mapped_column(
        ForeignKey("shipments.id", ondelete="CASCADE")
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE")
    )
    payment_intent_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, default=None, index=True
    )
    payment_method_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, default=None
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    currency: Mapped[str] = mapped_column(String(3), default="usd")
    status: Mapped[str] = mapped_column(
        String(20), default=PaymentRecordStatus.PENDING
    )
    type: Mapped[str] = mapped_column(String(20), default=PaymentType.AUTOMATIC)
    charge_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, default=None
    )
    failure_reason: Mapped[str | None] = mapped_column(
        Text, nullable=True, default=None
    )
    # "metadata" is reserved on declarative classes.
    extra: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, default=dict
    )
    attempted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
