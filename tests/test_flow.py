"""ShipmentFlow tests: creation, status changes, bulk updates, tracking, summary."""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError

from litestar_courier.config import CourierConfig
from litestar_courier.contrib.sqlalchemy.models import (
    NotificationModel,
    ShipmentHistoryModel,
    ShipmentModel,
)
from litestar_courier.contrib.sqlalchemy.repository import (
    SQLAlchemyNotificationRepository,
)
from litestar_courier.enums import ShipmentStatus
from litestar_courier.exceptions import (
    AuthenticationRequiredError,
    AuthorizationError,
    ShipmentNotFoundError,
    TrackingNotFoundError,
    ValidationError,
)
from litestar_courier.flow import BulkOutcome, ShipmentFlow
from litestar_courier.schemas import CreateShipmentRequest

from conftest import ADMIN, OTHER_CUSTOMER, SENDER, STAFF, shipment_payload


async def _count(session_factory, model, **filters) -> int:
    stmt = select(func.count()).select_from(model)
    for name, value in filters.items():
        stmt = stmt.where(getattr(model, name) == value)
    async with session_factory() as session:
        return (await session.execute(stmt)).scalar_one()


class TestCreateShipment:
    async def test_creates_pending_shipment_with_history(
        self, flow, make_shipment, session_factory
    ):
        shipment = await make_shipment()

        assert shipment.status == "pending"
        assert shipment.payment_status == "pending"
        assert shipment.sender_id == SENDER.user_id
        assert len(shipment.tracking_id) == 36

        detail = await flow.get_shipment(shipment.id, SENDER)
        assert [entry.notes for entry in detail.history] == ["Shipment created"]
        assert detail.history[0].updated_by == SENDER.user_id

    async def test_creation_sends_no_notification(
        self, make_shipment, session_factory
    ):
        await make_shipment()
        assert await _count(session_factory, NotificationModel) == 0

    async def test_tracking_ids_are_unique(self, make_shipment):
        first = await make_shipment()
        second = await make_shipment()
        assert first.tracking_id != second.tracking_id

    async def test_unknown_location_rejected(self, flow, session_factory):
        data = CreateShipmentRequest(
            **shipment_payload(destination_location_id=99)
        )
        with pytest.raises(ValidationError) as exc_info:
            await flow.create_shipment(data, SENDER)
        assert exc_info.value.field == "destination_location_id"
        assert await _count(session_factory, ShipmentHistoryModel) == 0

    async def test_anonymous_cannot_create(self, flow):
        data = CreateShipmentRequest(**shipment_payload())
        with pytest.raises(AuthenticationRequiredError):
            await flow.create_shipment(data, None)


class TestGetAndListShipments:
    async def test_owner_and_staff_can_read(self, flow, make_shipment):
        shipment = await make_shipment()
        assert (await flow.get_shipment(shipment.id, SENDER)).id == shipment.id
        assert (await flow.get_shipment(shipment.id, STAFF)).id == shipment.id

    async def test_other_customer_cannot_read(self, flow, make_shipment):
        shipment = await make_shipment()
        with pytest.raises(AuthorizationError):
            await flow.get_shipment(shipment.id, OTHER_CUSTOMER)

    async def test_missing_shipment(self, flow):
        with pytest.raises(ShipmentNotFoundError):
            await flow.get_shipment(404, STAFF)

    async def test_customers_only_list_their_own(self, flow, make_shipment):
        mine = await make_shipment()
        theirs = await make_shipment(actor=OTHER_CUSTOMER)

        own = await flow.list_shipments(SENDER)
        assert [s.id for s in own] == [mine.id]

        everything = await flow.list_shipments(STAFF)
        assert {s.id for s in everything} == {mine.id, theirs.id}

    async def test_list_filters_by_status(self, flow, make_shipment):
        first = await make_shipment()
        await make_shipment()
        await flow.update_status(first.id, "delivered", actor=STAFF)

        delivered = await flow.list_shipments(STAFF, status="delivered")
        assert [s.id for s in delivered] == [first.id]


class TestUpdateStatus:
    async def test_update_writes_status_history_and_notification(
        self, flow, make_shipment, session_factory
    ):
        shipment = await make_shipment()

        updated = await flow.update_status(
            shipment.id,
            "in_transit",
            location="Chicago hub",
            notes="Left depot",
            actor=STAFF,
        )

        assert updated.status == "in_transit"
        detail = await flow.get_shipment(shipment.id, STAFF)
        latest = detail.history[0]
        assert latest.status == "in_transit"
        assert latest.location == "Chicago hub"
        assert latest.notes == "Left depot"
        assert latest.updated_by == STAFF.user_id

        async with session_factory() as session:
            notifications = (
                (await session.execute(select(NotificationModel)))
                .scalars()
                .all()
            )
        assert len(notifications) == 1
        notification = notifications[0]
        assert notification.user_id == SENDER.user_id
        assert notification.title == "Shipment Status Updated"
        assert notification.data["status"] == "in_transit"
        assert notification.data["location"] == "Chicago hub"
        assert notification.action_url == f"/shipments/{shipment.id}"

    async def test_each_update_appends_exactly_one_entry(
        self, flow, make_shipment, session_factory
    ):
        shipment = await make_shipment()
        for status in ("picked_up", "picked_up", "in_transit"):
            await flow.update_status(shipment.id, status, actor=STAFF)

        # creation entry plus one per update, repeats included
        assert (
            await _count(
                session_factory, ShipmentHistoryModel, shipment_id=shipment.id
            )
            == 4
        )

    async def test_history_is_newest_first(self, flow, make_shipment):
        shipment = await make_shipment()
        for status in ("picked_up", "in_transit", "out_for_delivery"):
            await flow.update_status(shipment.id, status, actor=STAFF)

        detail = await flow.get_shipment(shipment.id, SENDER)
        assert [entry.status for entry in detail.history[:3]] == [
            "out_for_delivery",
            "in_transit",
            "picked_up",
        ]

    async def test_full_history_after_two_updates(self, flow, make_shipment):
        shipment = await make_shipment()
        for status in ("picked_up", "in_transit"):
            await flow.update_status(shipment.id, status, actor=STAFF)

        detail = await flow.get_shipment(shipment.id, SENDER)
        assert [entry.status for entry in detail.history] == [
            "in_transit",
            "picked_up",
            "pending",
        ]

    async def test_failed_notification_rolls_back_the_change(
        self, flow, make_shipment, session_factory, monkeypatch
    ):
        shipment = await make_shipment()

        async def broken_add(self, notification):
            raise OperationalError("INSERT notifications", {}, Exception("disk"))

        monkeypatch.setattr(SQLAlchemyNotificationRepository, "add", broken_add)
        with pytest.raises(OperationalError):
            await flow.update_status(shipment.id, "delivered", actor=STAFF)

        detail = await flow.get_shipment(shipment.id, STAFF)
        assert detail.status == "pending"
        assert detail.delivery_date is None
        assert len(detail.history) == 1
        assert await _count(session_factory, NotificationModel) == 0

    async def test_invalid_status_changes_nothing(
        self, flow, make_shipment, session_factory
    ):
        shipment = await make_shipment()

        with pytest.raises(ValidationError) as exc_info:
            await flow.update_status(shipment.id, "teleported", actor=STAFF)

        assert exc_info.value.field == "status"
        detail = await flow.get_shipment(shipment.id, STAFF)
        assert detail.status == "pending"
        assert len(detail.history) == 1
        assert await _count(session_factory, NotificationModel) == 0

    async def test_too_long_location_rejected(self, flow, make_shipment):
        shipment = await make_shipment()
        with pytest.raises(ValidationError) as exc_info:
            await flow.update_status(
                shipment.id, "in_transit", location="x" * 256, actor=STAFF
            )
        assert exc_info.value.field == "location"

    async def test_too_long_notes_rejected(self, flow, make_shipment):
        shipment = await make_shipment()
        with pytest.raises(ValidationError) as exc_info:
            await flow.update_status(
                shipment.id, "in_transit", notes="x" * 1001, actor=STAFF
            )
        assert exc_info.value.field == "notes"

    async def test_customer_cannot_update(self, flow, make_shipment):
        shipment = await make_shipment()
        with pytest.raises(AuthorizationError):
            await flow.update_status(shipment.id, "delivered", actor=SENDER)

    async def test_system_update_has_no_author(self, flow, make_shipment):
        shipment = await make_shipment()
        await flow.update_status(shipment.id, "picked_up")

        detail = await flow.get_shipment(shipment.id, STAFF)
        assert detail.history[0].status == "picked_up"
        assert detail.history[0].updated_by is None

    async def test_missing_shipment(self, flow):
        with pytest.raises(ShipmentNotFoundError):
            await flow.update_status(999, "delivered", actor=STAFF)

    async def test_delivery_date_set_once(self, flow, make_shipment):
        shipment = await make_shipment()
        await flow.update_status(shipment.id, "delivered", actor=STAFF)
        first = (await flow.get_shipment(shipment.id, STAFF)).delivery_date
        assert first is not None

        await flow.update_status(shipment.id, "returned", actor=STAFF)
        await flow.update_status(shipment.id, "delivered", actor=ADMIN)
        second = (await flow.get_shipment(shipment.id, STAFF)).delivery_date

        assert second == first

    async def test_any_status_may_follow_any_other(self, flow, make_shipment):
        shipment = await make_shipment()
        await flow.update_status(shipment.id, "delivered", actor=STAFF)
        updated = await flow.update_status(shipment.id, "pending", actor=STAFF)
        assert updated.status == "pending"

    async def test_notification_type_follows_status(
        self, flow, make_shipment, notifications
    ):
        shipment = await make_shipment()
        await flow.update_status(shipment.id, "cancelled", actor=STAFF)
        await flow.update_status(shipment.id, "delivered", actor=STAFF)

        items = await notifications.list_for_user(SENDER)
        assert [n.type for n in items] == ["success", "warning"]


class TestBulkUpdateStatus:
    async def test_skips_missing_ids(
        self, flow, make_shipment, session_factory
    ):
        first = await make_shipment()
        second = await make_shipment()

        result = await flow.bulk_update_status(
            [first.id, second.id, 9999], "in_transit", actor=STAFF
        )

        assert result.updated_count == 2
        assert result.ids_with(BulkOutcome.SKIPPED) == [9999]
        assert result.ids_with(BulkOutcome.FAILED) == []
        for shipment in (first, second):
            detail = await flow.get_shipment(shipment.id, STAFF)
            assert detail.status == "in_transit"
            assert len(detail.history) == 2
        assert await _count(session_factory, NotificationModel) == 2

    async def test_repeated_ids_are_applied_once(
        self, flow, make_shipment, session_factory
    ):
        shipment = await make_shipment()

        result = await flow.bulk_update_status(
            [shipment.id, shipment.id], "in_transit", actor=STAFF
        )

        assert result.updated_count == 1
        assert [item.shipment_id for item in result.items] == [shipment.id]
        assert (
            await _count(
                session_factory, ShipmentHistoryModel, shipment_id=shipment.id
            )
            == 2
        )
        assert await _count(session_factory, NotificationModel) == 1

    async def test_empty_selection_rejected(self, flow):
        with pytest.raises(ValidationError) as exc_info:
            await flow.bulk_update_status([], "delivered", actor=STAFF)
        assert exc_info.value.field == "shipment_ids"

    async def test_invalid_status_rejected_before_any_write(
        self, flow, make_shipment, session_factory
    ):
        shipment = await make_shipment()
        with pytest.raises(ValidationError):
            await flow.bulk_update_status([shipment.id], "lost", actor=STAFF)
        assert await _count(session_factory, NotificationModel) == 0

    async def test_customer_cannot_bulk_update(self, flow, make_shipment):
        shipment = await make_shipment()
        with pytest.raises(AuthorizationError):
            await flow.bulk_update_status(
                [shipment.id], "delivered", actor=SENDER
            )

    async def test_storage_failure_is_isolated(
        self, flow, make_shipment, monkeypatch
    ):
        first = await make_shipment()
        second = await make_shipment()
        original = ShipmentFlow._apply

        async def flaky_apply(self, shipment_id, change, actor):
            if shipment_id == first.id:
                raise OperationalError("UPDATE shipments", {}, Exception("locked"))
            return await original(self, shipment_id, change, actor)

        monkeypatch.setattr(ShipmentFlow, "_apply", flaky_apply)
        result = await flow.bulk_update_status(
            [first.id, second.id], "delivered", actor=STAFF
        )

        assert result.ids_with(BulkOutcome.FAILED) == [first.id]
        assert result.ids_with(BulkOutcome.UPDATED) == [second.id]
        assert result.items[0].error is not None


class TestTrack:
    async def test_returns_shipment_with_history(self, flow, make_shipment):
        shipment = await make_shipment()
        for status in ("picked_up", "in_transit"):
            await flow.update_status(shipment.id, status, actor=STAFF)

        tracked = await flow.track(shipment.tracking_id)

        assert tracked.id == shipment.id
        assert [entry.status for entry in tracked.history] == [
            "in_transit",
            "picked_up",
            "pending",
        ]

    async def test_surrounding_whitespace_is_ignored(self, flow, make_shipment):
        shipment = await make_shipment()
        tracked = await flow.track(f"  {shipment.tracking_id}\n")
        assert tracked.id == shipment.id

    async def test_lookup_is_case_sensitive(self, flow, make_shipment):
        shipment = await make_shipment()
        with pytest.raises(TrackingNotFoundError):
            await flow.track(shipment.tracking_id.upper())

    async def test_not_found_has_no_side_effects(
        self, flow, make_shipment, session_factory
    ):
        await make_shipment()
        with pytest.raises(TrackingNotFoundError) as exc_info:
            await flow.track("does-not-exist")
        assert exc_info.value.field == "tracking_id"
        assert await _count(session_factory, ShipmentHistoryModel) == 1
        assert await _count(session_factory, NotificationModel) == 0

    @pytest.mark.parametrize("tracking_id", ["", "   ", "x" * 51])
    async def test_invalid_tracking_id(self, flow, tracking_id):
        with pytest.raises(ValidationError) as exc_info:
            await flow.track(tracking_id)
        assert exc_info.value.field == "tracking_id"


class TestTrackMany:
    async def test_splits_found_and_not_found(self, flow, make_shipment):
        first = await make_shipment()
        second = await make_shipment()

        result = await flow.track_many(
            [second.tracking_id, "missing", f" {first.tracking_id} "]
        )

        assert [s.id for s in result.found] == [second.id, first.id]
        assert result.not_found == ["missing"]
        assert result.requested == [second.tracking_id, "missing", first.tracking_id]
        assert [e.status for e in result.found[0].history] == ["pending"]

    async def test_repeated_ids_collapse(self, flow, make_shipment):
        shipment = await make_shipment()
        result = await flow.track_many([shipment.tracking_id] * 3)
        assert result.requested == [shipment.tracking_id]
        assert len(result.found) == 1

    async def test_nothing_found_is_not_an_error(self, flow):
        result = await flow.track_many(["a", "b"])
        assert result.found == []
        assert result.not_found == ["a", "b"]

    @pytest.mark.parametrize(
        "tracking_ids",
        [[], ["ok", "  "], ["x" * 51], [f"id-{n}" for n in range(11)]],
    )
    async def test_invalid_request(self, flow, tracking_ids):
        with pytest.raises(ValidationError) as exc_info:
            await flow.track_many(tracking_ids)
        assert exc_info.value.field == "tracking_ids"

    async def test_limit_follows_config(self, session_factory):
        flow = ShipmentFlow(session_factory, CourierConfig(track_many_max=2))
        with pytest.raises(ValidationError):
            await flow.track_many(["a", "b", "c"])


class TestSummary:
    async def _mark_paid(self, session_factory, shipment_id):
        async with session_factory() as session, session.begin():
            await session.execute(
                update(ShipmentModel)
                .where(ShipmentModel.id == shipment_id)
                .values(payment_status="paid")
            )

    async def test_customer_sees_own_totals(
        self, flow, make_shipment, session_factory
    ):
        paid = await make_shipment()
        delivered = await make_shipment(price="10.10")
        await make_shipment(actor=OTHER_CUSTOMER)
        await self._mark_paid(session_factory, paid.id)
        await flow.update_status(delivered.id, "delivered", actor=STAFF)

        summary = await flow.summary(SENDER)

        assert summary.scope == "own"
        assert summary.total_shipments == 2
        assert summary.status_breakdown["pending"] == 1
        assert summary.status_breakdown["delivered"] == 1
        assert summary.status_breakdown["in_transit"] == 0
        assert summary.pending_payments == 1
        assert summary.paid_total == Decimal("49.90")
        assert summary.unread_notifications == 1

    async def test_staff_sees_everything(self, flow, make_shipment):
        await make_shipment()
        await make_shipment(actor=OTHER_CUSTOMER)

        summary = await flow.summary(STAFF)

        assert summary.scope == "all"
        assert summary.total_shipments == 2
        assert summary.pending_payments == 2
        assert summary.paid_total == Decimal("0.00")
        assert summary.unread_notifications == 0

    async def test_empty_breakdown_lists_every_status(self, flow):
        summary = await flow.summary(SENDER)
        assert summary.total_shipments == 0
        assert set(summary.status_breakdown) == {s.value for s in ShipmentStatus}
        assert not any(summary.status_breakdown.values())

    async def test_anonymous_rejected(self, flow):
        with pytest.raises(AuthenticationRequiredError):
            await flow.summary(None)
