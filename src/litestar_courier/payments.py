"""Payment attempts recorded against shipments.

The payment provider itself (charge creation, webhook verification) is
outside this package; its handlers call ``mark_succeeded`` and
``mark_failed`` once the provider reports an outcome.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from litestar_courier.actors import Actor, require_actor, require_role
from litestar_courier.config import CourierConfig
from litestar_courier.contrib.sqlalchemy.models import (
    PaymentRecordModel,
    ShipmentModel,
    utcnow,
)
from litestar_courier.contrib.sqlalchemy.repository import (
    SQLAlchemyNotificationRepository,
    SQLAlchemyPaymentRepository,
    SQLAlchemyShipmentRepository,
)
from litestar_courier.enums import (
    TERMINAL_PAYMENT_STATUSES,
    NotificationType,
    PaymentRecordStatus,
    PaymentStatus,
    PaymentType,
)
from litestar_courier.exceptions import (
    PaymentRecordNotFoundError,
    PaymentStateError,
    ShipmentNotFoundError,
)
from litestar_courier.notifications import build_notification, shipment_url

logger = logging.getLogger(__name__)


class PaymentLedger:
    """Records payment attempts and settles them exactly once."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: CourierConfig | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.config = config or CourierConfig()

    async def start_attempt(
        self,
        shipment_id: int,
        user_id: int,
        payment_intent_id: str | None = None,
        type: PaymentType | str = PaymentType.AUTOMATIC,
        metadata: dict[str, Any] | None = None,
    ) -> PaymentRecordModel:
        """Record a pending attempt for the shipment's full price."""
        async with self._session_factory() as session, session.begin():
            shipment = await self._get_shipment(session, shipment_id)
            if shipment.payment_status == PaymentStatus.PAID:
                raise PaymentStateError(
                    f"Shipment {shipment.tracking_id} is already paid."
                )
            record = await SQLAlchemyPaymentRepository(session).add(
                PaymentRecordModel(
                    shipment_id=shipment.id,
                    user_id=user_id,
                    payment_intent_id=payment_intent_id,
                    amount=shipment.price,
                    currency=self.config.currency,
                    status=PaymentRecordStatus.PENDING.value,
                    type=PaymentType(type).value,
                    extra=metadata or {},
                    attempted_at=utcnow(),
                )
            )
        logger.info(
            "Payment attempt %s started for shipment %s", record.id, shipment_id
        )
        return record

    async def find_by_intent(self, payment_intent_id: str) -> PaymentRecordModel:
        async with self._session_factory() as session:
            record = await SQLAlchemyPaymentRepository(session).get_by_intent(
                payment_intent_id
            )
        if record is None:
            raise PaymentRecordNotFoundError(payment_intent_id)
        return record

    async def mark_succeeded(
        self,
        record_id: int,
        charge_id: str | None = None,
        payment_method_id: str | None = None,
    ) -> PaymentRecordModel:
        """Settle an attempt as paid and mark the shipment paid."""
        async with self._session_factory() as session, session.begin():
            record = await self._get_open_record(session, record_id)
            record.status = PaymentRecordStatus.SUCCEEDED.value
            record.charge_id = charge_id
            record.payment_method_id = payment_method_id
            record.completed_at = utcnow()

            shipment = await self._get_shipment(session, record.shipment_id)
            if shipment.payment_status != PaymentStatus.PAID:
                shipment.payment_status = PaymentStatus.PAID.value
                await SQLAlchemyNotificationRepository(session).add(
                    build_notification(
                        shipment.sender_id,
                        NotificationType.SUCCESS,
                        "Payment Successful",
                        f"Payment for shipment {shipment.tracking_id} "
                        "has been processed successfully.",
                        action_url=shipment_url(shipment),
                        action_text="View Shipment",
                    )
                )
            await session.flush()
        logger.info("Payment attempt %s succeeded", record_id)
        return record

    async def mark_failed(
        self, record_id: int, reason: str | None = None
    ) -> PaymentRecordModel:
        """Settle an attempt as failed and tell the sender."""
        async with self._session_factory() as session, session.begin():
            record = await self._get_open_record(session, record_id)
            record.status = PaymentRecordStatus.FAILED.value
            record.failure_reason = reason or "Payment failed"
            record.completed_at = utcnow()

            shipment = await self._get_shipment(session, record.shipment_id)
            await SQLAlchemyNotificationRepository(session).add(
                build_notification(
                    shipment.sender_id,
                    NotificationType.ERROR,
                    "Payment Failed",
                    f"Payment for shipment {shipment.tracking_id} failed. "
                    "Please try again.",
                    action_url=f"/payments/{shipment.id}",
                    action_text="Retry Payment",
                )
            )
            await session.flush()
        logger.warning(
            "Payment attempt %s failed: %s", record_id, record.failure_reason
        )
        return record

    async def mark_paid_manually(
        self,
        shipment_id: int,
        actor: Actor | None,
        payment_method: str,
        notes: str | None = None,
    ) -> PaymentRecordModel:
        """Admin confirmation of a payment collected outside the provider."""
        actor = require_role(actor, self.config.admin_roles)
        async with self._session_factory() as session, session.begin():
            shipment = await self._get_shipment(session, shipment_id)
            if shipment.payment_status == PaymentStatus.PAID:
                raise PaymentStateError(
                    "This shipment is already marked as paid."
                )
            now = utcnow()
            record = await SQLAlchemyPaymentRepository(session).add(
                PaymentRecordModel(
                    shipment_id=shipment.id,
                    user_id=actor.user_id,
                    amount=shipment.price,
                    currency=self.config.currency,
                    status=PaymentRecordStatus.SUCCEEDED.value,
                    type=PaymentType.MANUAL.value,
                    payment_method_id=payment_method,
                    extra={
                        "payment_method": payment_method,
                        "notes": notes,
                        "admin_user_id": actor.user_id,
                    },
                    attempted_at=now,
                    completed_at=now,
                )
            )
            shipment.payment_status = PaymentStatus.PAID.value
            await SQLAlchemyNotificationRepository(session).add(
                build_notification(
                    shipment.sender_id,
                    NotificationType.SUCCESS,
                    "Payment Confirmed",
                    f"Payment for shipment {shipment.tracking_id} has been "
                    "manually confirmed by admin.",
                    action_url=shipment_url(shipment),
                    action_text="View Shipment",
                )
            )
        logger.info(
            "Shipment %s marked paid manually by user %s",
            shipment_id,
            actor.user_id,
        )
        return record

    async def list_for_user(
        self, actor: Actor | None, *, limit: int | None = None, offset: int = 0
    ) -> list[PaymentRecordModel]:
        actor = require_actor(actor)
        async with self._session_factory() as session:
            return await SQLAlchemyPaymentRepository(session).find(
                user_id=actor.user_id, limit=self._page(limit), offset=offset
            )

    async def list_all(
        self, actor: Actor | None, *, limit: int | None = None, offset: int = 0
    ) -> list[PaymentRecordModel]:
        require_role(actor, self.config.admin_roles)
        async with self._session_factory() as session:
            return await SQLAlchemyPaymentRepository(session).find(
                limit=self._page(limit), offset=offset
            )

    def _page(self, limit: int | None) -> int:
        return min(limit or self.config.default_page_size, self.config.max_page_size)

    @staticmethod
    async def _get_shipment(
        session: AsyncSession, shipment_id: int
    ) -> ShipmentModel:
        shipment = await SQLAlchemyShipmentRepository(session).get_by_id(
            shipment_id
        )
        if shipment is None:
            raise ShipmentNotFoundError(shipment_id)
        return shipment

    @staticmethod
    async def _get_open_record(
        session: AsyncSession, record_id: int
    ) -> PaymentRecordModel:
        record = await SQLAlchemyPaymentRepository(session).get_by_id(record_id)
        if record is None:
            raise PaymentRecordNotFoundError(record_id)
        if record.status in TERMINAL_PAYMENT_STATUSES:
            raise PaymentStateError(
                f"Payment attempt {record_id} is already {record.status}."
            )
        return record
