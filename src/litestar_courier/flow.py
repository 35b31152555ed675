"""Shipment lifecycle: creation, status changes and tracking.

Every status mutation writes the new status, one history entry and one
notification for the sender inside a single transaction, so the three
records either all exist or none of them do.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from litestar_courier.actors import Actor, require_actor, require_owner, require_role
from litestar_courier.config import CourierConfig
from litestar_courier.contrib.sqlalchemy.models import ShipmentModel, utcnow
from litestar_courier.contrib.sqlalchemy.repository import (
    SQLAlchemyLocationRepository,
    SQLAlchemyNotificationRepository,
    SQLAlchemyShipmentRepository,
)
from litestar_courier.enums import PaymentStatus, ShipmentStatus
from litestar_courier.exceptions import (
    ShipmentNotFoundError,
    TrackingNotFoundError,
    ValidationError,
)
from litestar_courier.notifications import status_change_notification
from litestar_courier.schemas import CreateShipmentRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusChange:
    """A validated status change payload."""

    status: ShipmentStatus
    location: str | None = None
    notes: str | None = None


class BulkOutcome(StrEnum):
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class BulkItemResult:
    shipment_id: int
    outcome: BulkOutcome
    error: str | None = None


@dataclass
class BulkUpdateResult:
    """Per-shipment outcome of a bulk status change."""

    items: list[BulkItemResult] = field(default_factory=list)

    def ids_with(self, outcome: BulkOutcome) -> list[int]:
        return [item.shipment_id for item in self.items if item.outcome == outcome]

    @property
    def updated_count(self) -> int:
        return len(self.ids_with(BulkOutcome.UPDATED))


@dataclass
class TrackManyResult:
    requested: list[str]
    found: list[ShipmentModel]
    not_found: list[str]


@dataclass(frozen=True)
class ShipmentSummary:
    """Counters shown on the dashboard.

    ``scope`` is ``"all"`` for staff and ``"own"`` for customers.
    """

    scope: str
    total_shipments: int
    status_breakdown: dict[str, int]
    pending_payments: int
    paid_total: Decimal
    unread_notifications: int


def validate_status_change(
    status: str,
    location: str | None = None,
    notes: str | None = None,
    *,
    config: CourierConfig,
) -> StatusChange:
    """Check a requested status change against the fixed status set.

    Any status may follow any other; only membership is enforced.
    """
    try:
        target = ShipmentStatus(status)
    except ValueError:
        allowed = ", ".join(s.value for s in ShipmentStatus)
        raise ValidationError(
            f"Invalid status {status!r}. Expected one of: {allowed}.",
            field="status",
        ) from None
    if location is not None and len(location) > config.location_max_length:
        raise ValidationError(
            f"Location may not be greater than "
            f"{config.location_max_length} characters.",
            field="location",
        )
    if notes is not None and len(notes) > config.notes_max_length:
        raise ValidationError(
            f"Notes may not be greater than "
            f"{config.notes_max_length} characters.",
            field="notes",
        )
    return StatusChange(status=target, location=location or None, notes=notes or None)


class ShipmentFlow:
    """Orchestrates shipment persistence, history and notifications."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: CourierConfig | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.config = config or CourierConfig()

    async def create_shipment(
        self, data: CreateShipmentRequest, actor: Actor | None
    ) -> ShipmentModel:
        """Create a pending shipment owned by the actor."""
        actor = require_actor(actor)
        async with self._session_factory() as session, session.begin():
            existing = await SQLAlchemyLocationRepository(session).existing_ids(
                [data.origin_location_id, data.destination_location_id]
            )
            for field_name in ("origin_location_id", "destination_location_id"):
                if getattr(data, field_name) not in existing:
                    raise ValidationError(
                        "The selected location is invalid.", field=field_name
                    )

            repo = SQLAlchemyShipmentRepository(session)
            shipment = await repo.add(
                ShipmentModel(
                    **data.model_dump(),
                    tracking_id=str(uuid.uuid4()),
                    sender_id=actor.user_id,
                    status=ShipmentStatus.PENDING.value,
                    payment_status=PaymentStatus.PENDING.value,
                )
            )
            await repo.append_history(
                shipment,
                status=shipment.status,
                notes="Shipment created",
                updated_by=actor.user_id,
            )
        logger.info(
            "Shipment %s created by user %s", shipment.tracking_id, actor.user_id
        )
        return shipment

    async def get_shipment(
        self, shipment_id: int, actor: Actor | None
    ) -> ShipmentModel:
        """Load a shipment with its history for its owner or staff."""
        async with self._session_factory() as session:
            shipment = await SQLAlchemyShipmentRepository(session).get_by_id(
                shipment_id, with_history=True
            )
        if shipment is None:
            raise ShipmentNotFoundError(shipment_id)
        require_owner(actor, shipment.sender_id, self.config.staff_roles)
        return shipment

    async def list_shipments(
        self,
        actor: Actor | None,
        *,
        search: str | None = None,
        status: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ShipmentModel]:
        """Staff see every shipment, customers only their own."""
        actor = require_actor(actor)
        sender_id = (
            None if actor.has_any_role(self.config.staff_roles) else actor.user_id
        )
        limit = min(
            limit or self.config.default_page_size, self.config.max_page_size
        )
        async with self._session_factory() as session:
            return await SQLAlchemyShipmentRepository(session).find(
                sender_id=sender_id,
                search=search,
                status=status,
                limit=limit,
                offset=offset,
            )

    async def update_status(
        self,
        shipment_id: int,
        status: str,
        location: str | None = None,
        notes: str | None = None,
        actor: Actor | None = None,
    ) -> ShipmentModel:
        """Move a shipment to ``status``.

        ``actor=None`` marks a system-originated change; otherwise the
        actor needs a staff role.
        """
        change = validate_status_change(
            status, location, notes, config=self.config
        )
        if actor is not None:
            require_role(actor, self.config.staff_roles)
        return await self._apply(shipment_id, change, actor)

    async def bulk_update_status(
        self,
        shipment_ids: Sequence[int],
        status: str,
        location: str | None = None,
        notes: str | None = None,
        actor: Actor | None = None,
    ) -> BulkUpdateResult:
        """Apply one status change to many shipments, best effort.

        Each shipment gets its own transaction. Repeated ids are processed
        once. Unknown ids are skipped and a failing item does not undo the
        ones before it.
        """
        if not shipment_ids:
            raise ValidationError(
                "Select at least one shipment.", field="shipment_ids"
            )
        change = validate_status_change(
            status, location, notes, config=self.config
        )
        if actor is not None:
            require_role(actor, self.config.staff_roles)

        unique_ids = list(dict.fromkeys(shipment_ids))
        result = BulkUpdateResult()
        for shipment_id in unique_ids:
            try:
                await self._apply(shipment_id, change, actor)
            except ShipmentNotFoundError:
                logger.warning(
                    "Bulk status update skipped missing shipment %s", shipment_id
                )
                result.items.append(
                    BulkItemResult(shipment_id, BulkOutcome.SKIPPED)
                )
            except SQLAlchemyError as exc:
                logger.exception(
                    "Bulk status update failed for shipment %s", shipment_id
                )
                result.items.append(
                    BulkItemResult(shipment_id, BulkOutcome.FAILED, str(exc))
                )
            else:
                result.items.append(
                    BulkItemResult(shipment_id, BulkOutcome.UPDATED)
                )

        logger.info(
            "Bulk status update to %s: %d of %d shipments updated",
            change.status,
            result.updated_count,
            len(unique_ids),
        )
        return result

    async def track(self, tracking_id: str) -> ShipmentModel:
        """Public lookup by tracking id; history is loaded newest first."""
        tracking_id = (tracking_id or "").strip()
        if not tracking_id:
            raise ValidationError(
                "The tracking id field is required.", field="tracking_id"
            )
        if len(tracking_id) > self.config.tracking_id_max_length:
            raise ValidationError(
                f"The tracking id may not be greater than "
                f"{self.config.tracking_id_max_length} characters.",
                field="tracking_id",
            )
        async with self._session_factory() as session:
            shipment = await SQLAlchemyShipmentRepository(
                session
            ).get_by_tracking_id(tracking_id)
        if shipment is None:
            raise TrackingNotFoundError(tracking_id)
        return shipment

    async def track_many(self, tracking_ids: Sequence[str]) -> TrackManyResult:
        """Public lookup of several tracking ids at once.

        Ids are stripped and repeated ids collapse to one. Found shipments
        keep the order in which they were requested.
        """
        cleaned = [(tracking_id or "").strip() for tracking_id in tracking_ids]
        if not cleaned:
            raise ValidationError(
                "Provide at least one tracking id.", field="tracking_ids"
            )
        if len(cleaned) > self.config.track_many_max:
            raise ValidationError(
                f"No more than {self.config.track_many_max} tracking ids "
                f"may be requested at once.",
                field="tracking_ids",
            )
        for tracking_id in cleaned:
            if not tracking_id:
                raise ValidationError(
                    "Tracking ids may not be blank.", field="tracking_ids"
                )
            if len(tracking_id) > self.config.tracking_id_max_length:
                raise ValidationError(
                    f"Each tracking id may not be greater than "
                    f"{self.config.tracking_id_max_length} characters.",
                    field="tracking_ids",
                )

        requested = list(dict.fromkeys(cleaned))
        async with self._session_factory() as session:
            shipments = await SQLAlchemyShipmentRepository(
                session
            ).find_by_tracking_ids(requested)
        by_id = {shipment.tracking_id: shipment for shipment in shipments}
        return TrackManyResult(
            requested=requested,
            found=[by_id[t] for t in requested if t in by_id],
            not_found=[t for t in requested if t not in by_id],
        )

    async def summary(self, actor: Actor | None) -> ShipmentSummary:
        """Dashboard counters; staff see every shipment, customers their own."""
        actor = require_actor(actor)
        staff = actor.has_any_role(self.config.staff_roles)
        sender_id = None if staff else actor.user_id
        async with self._session_factory() as session:
            repo = SQLAlchemyShipmentRepository(session)
            by_status = await repo.count_by("status", sender_id=sender_id)
            by_payment = await repo.count_by("payment_status", sender_id=sender_id)
            paid_total = await repo.paid_total(sender_id=sender_id)
            unread = await SQLAlchemyNotificationRepository(session).count_unread(
                actor.user_id
            )
        return ShipmentSummary(
            scope="all" if staff else "own",
            total_shipments=sum(by_status.values()),
            status_breakdown={
                status.value: by_status.get(status.value, 0)
                for status in ShipmentStatus
            },
            pending_payments=by_payment.get(PaymentStatus.PENDING.value, 0),
            paid_total=paid_total,
            unread_notifications=unread,
        )

    async def _apply(
        self,
        shipment_id: int,
        change: StatusChange,
        actor: Actor | None,
    ) -> ShipmentModel:
        async with self._session_factory() as session, session.begin():
            repo = SQLAlchemyShipmentRepository(session)
            shipment = await repo.get_by_id(shipment_id)
            if shipment is None:
                raise ShipmentNotFoundError(shipment_id)

            previous = shipment.status
            shipment.status = change.status.value
            if (
                change.status is ShipmentStatus.DELIVERED
                and shipment.delivery_date is None
            ):
                shipment.delivery_date = utcnow()

            await repo.append_history(
                shipment,
                status=shipment.status,
                location=change.location,
                notes=change.notes,
                updated_by=actor.user_id if actor is not None else None,
            )
            await SQLAlchemyNotificationRepository(session).add(
                status_change_notification(shipment, change.location)
            )
        logger.info(
            "Shipment %s status %s -> %s",
            shipment.tracking_id,
            previous,
            shipment.status,
        )
        return shipment
