"""Fixed value sets used by courier records."""

from __future__ import annotations

from enum import StrEnum


class ShipmentStatus(StrEnum):
    PENDING = "pending"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"


class ServiceType(StrEnum):
    STANDARD = "standard"
    EXPRESS = "express"
    OVERNIGHT = "overnight"


class PaymentStatus(StrEnum):
    """Payment state of a shipment as a whole."""

    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class PaymentRecordStatus(StrEnum):
    """State of a single payment attempt."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    REQUIRES_ACTION = "requires_action"


class PaymentType(StrEnum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class NotificationType(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


# Human-readable status labels
STATUS_LABELS: dict[str, str] = {
    ShipmentStatus.PENDING: "Pending Pickup",
    ShipmentStatus.PICKED_UP: "Picked Up",
    ShipmentStatus.IN_TRANSIT: "In Transit",
    ShipmentStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    ShipmentStatus.DELIVERED: "Delivered",
    ShipmentStatus.CANCELLED: "Cancelled",
    ShipmentStatus.RETURNED: "Returned",
}

TERMINAL_PAYMENT_STATUSES = frozenset(
    {PaymentRecordStatus.SUCCEEDED, PaymentRecordStatus.FAILED}
)


def status_label(status: str) -> str:
    """Label for a shipment status, falling back to a prettified value."""
    return STATUS_LABELS.get(status, status.replace("_", " ").capitalize())
