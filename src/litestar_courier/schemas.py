"""Request/response schemas for HTTP endpoints."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from litestar_courier.enums import ServiceType

_MONEY_MAX = Decimal("999999.99")
_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class CreateShipmentRequest(BaseModel):
    """Payload for shipment creation.

    Status is not accepted here: new shipments always start as pending.
    """

    model_config = ConfigDict(use_enum_values=True)

    recipient_name: str = Field(min_length=1, max_length=255)
    recipient_phone: str = Field(min_length=1, max_length=20)
    recipient_email: str | None = Field(
        default=None, max_length=255, pattern=_EMAIL_PATTERN
    )
    recipient_address: str = Field(min_length=1)
    origin_location_id: int
    destination_location_id: int
    description: str = Field(min_length=1, max_length=1000)
    weight: Decimal = Field(ge=Decimal("0.01"), le=_MONEY_MAX)
    dimensions: str | None = Field(default=None, max_length=100)
    declared_value: Decimal | None = Field(default=None, ge=0, le=_MONEY_MAX)
    service_type: ServiceType
    price: Decimal = Field(ge=0, le=_MONEY_MAX)
    pickup_date: datetime | None = None
    estimated_delivery: datetime | None = None
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("pickup_date", "estimated_delivery")
    @classmethod
    def _normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @field_validator("pickup_date")
    @classmethod
    def _pickup_not_in_past(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.date() < datetime.now(tz=UTC).date():
            raise ValueError("Pickup date cannot be in the past.")
        return value

    @model_validator(mode="after")
    def _check_route_and_dates(self) -> CreateShipmentRequest:
        if self.origin_location_id == self.destination_location_id:
            raise ValueError(
                "Origin and destination locations must be different."
            )
        if (
            self.pickup_date is not None
            and self.estimated_delivery is not None
            and self.estimated_delivery <= self.pickup_date
        ):
            raise ValueError("Estimated delivery must be after pickup date.")
        return self


class StatusUpdateRequest(BaseModel):
    """Target status for a single shipment.

    Values are checked by ShipmentFlow so that every caller gets the
    same field-level errors.
    """

    status: str
    location: str | None = None
    notes: str | None = None


class BulkStatusUpdateRequest(StatusUpdateRequest):
    shipment_ids: list[int]


class TrackRequest(BaseModel):
    tracking_id: str


class TrackManyRequest(BaseModel):
    tracking_ids: list[str]


class CreateLocationRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    street: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=255)
    state: str = Field(default="", max_length=255)
    postal_code: str = Field(default="", max_length=20)
    country: str = Field(min_length=1, max_length=100)
    latitude: Decimal | None = Field(default=None, ge=-90, le=90)
    longitude: Decimal | None = Field(default=None, ge=-180, le=180)


class ManualPaymentRequest(BaseModel):
    payment_method: str = Field(min_length=1, max_length=255)
    notes: str | None = Field(default=None, max_length=1000)


class LocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    street: str
    city: str
    state: str
    postal_code: str
    country: str
    latitude: Decimal | None
    longitude: Decimal | None
    full_address: str


class HistoryEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: str
    status_label: str
    location: str | None
    notes: str | None
    updated_by: int | None
    created_at: datetime


class ShipmentResponse(BaseModel):
    """Serialized shipment response payload."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    tracking_id: str
    sender_id: int
    recipient_name: str
    recipient_phone: str
    recipient_email: str | None
    recipient_address: str
    origin_location_id: int
    destination_location_id: int
    description: str
    weight: Decimal
    dimensions: str | None
    declared_value: Decimal | None
    service_type: str
    status: str
    status_label: str
    price: Decimal
    payment_status: str
    pickup_date: datetime | None
    delivery_date: datetime | None
    estimated_delivery: datetime | None
    notes: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_shipment(cls, shipment: Any) -> ShipmentResponse:
        return cls.model_validate(shipment)


class ShipmentDetailResponse(BaseModel):
    """Shipment together with its history, newest entry first."""

    shipment: ShipmentResponse
    history: list[HistoryEntryResponse]

    @classmethod
    def from_shipment(cls, shipment: Any) -> ShipmentDetailResponse:
        return cls(
            shipment=ShipmentResponse.from_shipment(shipment),
            history=[
                HistoryEntryResponse.model_validate(entry)
                for entry in shipment.history
            ],
        )


class TrackedShipmentResponse(BaseModel):
    """Condensed public view of one shipment in a multi-tracking lookup."""

    tracking_id: str
    status: str
    status_label: str
    payment_status: str
    recipient_name: str
    last_update: datetime
    latest_event: HistoryEntryResponse | None

    @classmethod
    def from_shipment(cls, shipment: Any) -> TrackedShipmentResponse:
        latest = shipment.history[0] if shipment.history else None
        return cls(
            tracking_id=shipment.tracking_id,
            status=shipment.status,
            status_label=shipment.status_label,
            payment_status=shipment.payment_status,
            recipient_name=shipment.recipient_name,
            last_update=shipment.updated_at,
            latest_event=(
                HistoryEntryResponse.model_validate(latest) if latest else None
            ),
        )


class TrackManyResponse(BaseModel):
    found: list[TrackedShipmentResponse]
    not_found: list[str]
    total_requested: int
    total_found: int

    @classmethod
    def from_result(cls, result: Any) -> TrackManyResponse:
        return cls(
            found=[TrackedShipmentResponse.from_shipment(s) for s in result.found],
            not_found=result.not_found,
            total_requested=len(result.requested),
            total_found=len(result.found),
        )


class ShipmentSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    scope: str
    total_shipments: int
    status_breakdown: dict[str, int]
    pending_payments: int
    paid_total: Decimal
    unread_notifications: int


class BulkStatusUpdateResponse(BaseModel):
    updated: int
    skipped: list[int]
    failed: list[int]


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    title: str
    message: str
    data: dict[str, Any] | None
    action_url: str | None
    action_text: str | None
    read_at: datetime | None
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int


class PaymentRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    shipment_id: int
    user_id: int
    payment_intent_id: str | None
    amount: Decimal
    currency: str
    status: str
    type: str
    charge_id: str | None
    failure_reason: str | None
    metadata: dict[str, Any] = Field(validation_alias="extra")
    attempted_at: datetime
    completed_at: datetime | None
