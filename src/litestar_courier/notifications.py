"""In-app notifications and their read state."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from litestar_courier.actors import Actor, require_actor, require_owner
from litestar_courier.config import CourierConfig
from litestar_courier.contrib.sqlalchemy.models import (
    NotificationModel,
    ShipmentModel,
    utcnow,
)
from litestar_courier.contrib.sqlalchemy.repository import (
    SQLAlchemyNotificationRepository,
)
from litestar_courier.enums import NotificationType, ShipmentStatus, status_label
from litestar_courier.exceptions import NotificationNotFoundError

logger = logging.getLogger(__name__)

_STATUS_NOTIFICATION_TYPES: dict[str, NotificationType] = {
    ShipmentStatus.DELIVERED: NotificationType.SUCCESS,
    ShipmentStatus.CANCELLED: NotificationType.WARNING,
    ShipmentStatus.RETURNED: NotificationType.WARNING,
}


def shipment_url(shipment: ShipmentModel) -> str:
    return f"/shipments/{shipment.id}"


def build_notification(
    user_id: int,
    type: NotificationType | str,
    title: str,
    message: str,
    data: dict[str, Any] | None = None,
    action_url: str | None = None,
    action_text: str | None = None,
) -> NotificationModel:
    return NotificationModel(
        user_id=user_id,
        type=str(NotificationType(type)),
        title=title,
        message=message,
        data=data,
        action_url=action_url,
        action_text=action_text,
    )


def status_change_notification(
    shipment: ShipmentModel, location: str | None = None
) -> NotificationModel:
    """Notification telling the sender about a shipment's new status."""
    label = status_label(shipment.status)
    message = f"Shipment {shipment.tracking_id} is now {label}."
    if location:
        message = f"Shipment {shipment.tracking_id} is now {label} ({location})."
    return build_notification(
        user_id=shipment.sender_id,
        type=_STATUS_NOTIFICATION_TYPES.get(
            shipment.status, NotificationType.INFO
        ),
        title="Shipment Status Updated",
        message=message,
        data={
            "shipment_id": shipment.id,
            "tracking_id": shipment.tracking_id,
            "status": shipment.status,
            "location": location,
        },
        action_url=shipment_url(shipment),
        action_text="View Shipment",
    )


class NotificationCenter:
    """Creates notifications and drives the unread -> read transition."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: CourierConfig | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._config = config or CourierConfig()

    async def notify(
        self,
        user_id: int,
        type: NotificationType | str,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
        action_url: str | None = None,
        action_text: str | None = None,
    ) -> NotificationModel:
        """Create an unread notification for ``user_id``."""
        async with self._session_factory() as session, session.begin():
            notification = await SQLAlchemyNotificationRepository(session).add(
                build_notification(
                    user_id,
                    type,
                    title,
                    message,
                    data=data,
                    action_url=action_url,
                    action_text=action_text,
                )
            )
        return notification

    async def list_for_user(
        self,
        actor: Actor | None,
        *,
        unread_only: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[NotificationModel]:
        """The actor's notifications, newest first."""
        actor = require_actor(actor)
        limit = min(
            limit or self._config.default_page_size, self._config.max_page_size
        )
        async with self._session_factory() as session:
            return await SQLAlchemyNotificationRepository(session).list_for_user(
                actor.user_id,
                unread_only=unread_only,
                limit=limit,
                offset=offset,
            )

    async def unread_count(self, actor: Actor | None) -> int:
        actor = require_actor(actor)
        async with self._session_factory() as session:
            return await SQLAlchemyNotificationRepository(session).count_unread(
                actor.user_id
            )

    async def mark_read(
        self, notification_id: int, actor: Actor | None
    ) -> NotificationModel:
        """Mark one notification read.

        Marking an already-read notification keeps its original
        ``read_at``.
        """
        async with self._session_factory() as session, session.begin():
            notification = await self._get_owned(session, notification_id, actor)
            if notification.read_at is None:
                notification.read_at = utcnow()
                await session.flush()
        return notification

    async def mark_all_read(self, actor: Actor | None) -> int:
        """Mark every unread notification of the actor read."""
        actor = require_actor(actor)
        async with self._session_factory() as session, session.begin():
            updated = await SQLAlchemyNotificationRepository(
                session
            ).mark_all_read(actor.user_id, utcnow())
        logger.info(
            "Marked %d notifications read for user %s", updated, actor.user_id
        )
        return updated

    async def delete(self, notification_id: int, actor: Actor | None) -> None:
        async with self._session_factory() as session, session.begin():
            notification = await self._get_owned(session, notification_id, actor)
            await SQLAlchemyNotificationRepository(session).delete(notification)

    async def _get_owned(
        self,
        session: AsyncSession,
        notification_id: int,
        actor: Actor | None,
    ) -> NotificationModel:
        actor = require_actor(actor)
        notification = await SQLAlchemyNotificationRepository(session).get_by_id(
            notification_id
        )
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        require_owner(actor, notification.user_id)
        return notification
