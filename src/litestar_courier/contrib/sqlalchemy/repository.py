"""SQLAlchemy 2.0 async repositories bound to a single session.

Repositories never commit; the caller owns the transaction so that
several writes can share one unit of work.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from litestar_courier.contrib.sqlalchemy.models import (
    LocationModel,
    NotificationModel,
    PaymentRecordModel,
    ShipmentHistoryModel,
    ShipmentModel,
)
from litestar_courier.enums import PaymentStatus


class SQLAlchemyShipmentRepository:
    """Shipment and status history queries."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(
        self, shipment_id: int, *, with_history: bool = False
    ) -> ShipmentModel | None:
        if not with_history:
            return await self.session.get(ShipmentModel, shipment_id)
        stmt = (
            select(ShipmentModel)
            .where(ShipmentModel.id == shipment_id)
            .options(selectinload(ShipmentModel.history))
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_tracking_id(self, tracking_id: str) -> ShipmentModel | None:
        """Exact, case-sensitive lookup with history eagerly loaded."""
        stmt = (
            select(ShipmentModel)
            .where(ShipmentModel.tracking_id == tracking_id)
            .options(selectinload(ShipmentModel.history))
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_tracking_ids(
        self, tracking_ids: Sequence[str]
    ) -> list[ShipmentModel]:
        """Exact lookup of several tracking ids; order is not preserved."""
        stmt = (
            select(ShipmentModel)
            .where(ShipmentModel.tracking_id.in_(tracking_ids))
            .options(selectinload(ShipmentModel.history))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def add(self, shipment: ShipmentModel) -> ShipmentModel:
        self.session.add(shipment)
        await self.session.flush()
        return shipment

    async def append_history(
        self,
        shipment: ShipmentModel,
        *,
        status: str,
        location: str | None = None,
        notes: str | None = None,
        updated_by: int | None = None,
    ) -> ShipmentHistoryModel:
        entry = ShipmentHistoryModel(
            shipment_id=shipment.id,
            status=status,
            location=location,
            notes=notes,
            updated_by=updated_by,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def find(
        self,
        *,
        sender_id: int | None = None,
        search: str | None = None,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[ShipmentModel]:
        """List shipments, newest first."""
        stmt = select(ShipmentModel)
        if sender_id is not None:
            stmt = stmt.where(ShipmentModel.sender_id == sender_id)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(
                    ShipmentModel.tracking_id.like(pattern),
                    ShipmentModel.recipient_name.like(pattern),
                    ShipmentModel.description.like(pattern),
                )
            )
        if status:
            stmt = stmt.where(ShipmentModel.status == status)
        stmt = (
            stmt.order_by(ShipmentModel.created_at.desc(), ShipmentModel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by(
        self, column: str, *, sender_id: int | None = None
    ) -> dict[str, int]:
        """Shipment counts grouped by ``status`` or ``payment_status``."""
        group = getattr(ShipmentModel, column)
        stmt = select(group, func.count(ShipmentModel.id)).group_by(group)
        if sender_id is not None:
            stmt = stmt.where(ShipmentModel.sender_id == sender_id)
        result = await self.session.execute(stmt)
        return {value: count for value, count in result.all()}

    async def paid_total(self, *, sender_id: int | None = None) -> Decimal:
        """Sum of prices of shipments whose payment status is paid."""
        stmt = select(func.sum(ShipmentModel.price)).where(
            ShipmentModel.payment_status == PaymentStatus.PAID.value
        )
        if sender_id is not None:
            stmt = stmt.where(ShipmentModel.sender_id == sender_id)
        total = (await self.session.execute(stmt)).scalar_one()
        return Decimal(total or 0).quantize(Decimal("0.01"))


class SQLAlchemyNotificationRepository:
    """Notification queries scoped to their owning user."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, notification_id: int) -> NotificationModel | None:
        return await self.session.get(NotificationModel, notification_id)

    async def add(self, notification: NotificationModel) -> NotificationModel:
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def delete(self, notification: NotificationModel) -> None:
        await self.session.delete(notification)
        await self.session.flush()

    async def list_for_user(
        self,
        user_id: int,
        *,
        unread_only: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> list[NotificationModel]:
        stmt = select(NotificationModel).where(NotificationModel.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationModel.read_at.is_(None))
        stmt = (
            stmt.order_by(
                NotificationModel.created_at.desc(), NotificationModel.id.desc()
            )
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_unread(self, user_id: int) -> int:
        stmt = (
            select(func.count(NotificationModel.id))
            .where(NotificationModel.user_id == user_id)
            .where(NotificationModel.read_at.is_(None))
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def mark_all_read(self, user_id: int, read_at: datetime) -> int:
        """Set ``read_at`` on the user's unread notifications."""
        stmt = (
            update(NotificationModel)
            .where(NotificationModel.user_id == user_id)
            .where(NotificationModel.read_at.is_(None))
            .values(read_at=read_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0


class SQLAlchemyPaymentRepository:
    """Payment attempt queries."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, record_id: int) -> PaymentRecordModel | None:
        return await self.session.get(PaymentRecordModel, record_id)

    async def get_by_intent(
        self, payment_intent_id: str
    ) -> PaymentRecordModel | None:
        stmt = (
            select(PaymentRecordModel)
            .where(PaymentRecordModel.payment_intent_id == payment_intent_id)
            .order_by(PaymentRecordModel.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, record: PaymentRecordModel) -> PaymentRecordModel:
        self.session.add(record)
        await self.session.flush()
        return record

    async def find(
        self,
        *,
        user_id: int | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[PaymentRecordModel]:
        """List payment attempts, most recent attempt first."""
        stmt = select(PaymentRecordModel)
        if user_id is not None:
            stmt = stmt.where(PaymentRecordModel.user_id == user_id)
        stmt = (
            stmt.order_by(
                PaymentRecordModel.attempted_at.desc(),
                PaymentRecordModel.id.desc(),
            )
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class SQLAlchemyLocationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, location_id: int) -> LocationModel | None:
        return await self.session.get(LocationModel, location_id)

    async def existing_ids(self, location_ids: Sequence[int]) -> set[int]:
        stmt = select(LocationModel.id).where(LocationModel.id.in_(location_ids))
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def add(self, location: LocationModel) -> LocationModel:
        self.session.add(location)
        await self.session.flush()
        return location

    async def list_all(self) -> list[LocationModel]:
        stmt = select(LocationModel).order_by(
            LocationModel.city.asc(), LocationModel.name.asc()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
