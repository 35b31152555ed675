"""Notification endpoints, scoped to the calling user."""

from __future__ import annotations

from typing import Annotated, ClassVar

from litestar import Controller, delete, get, patch
from litestar.params import Dependency, Parameter

from litestar_courier.dependencies import CurrentActor
from litestar_courier.notifications import NotificationCenter
from litestar_courier.schemas import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)

Center = Annotated[NotificationCenter, Dependency(skip_validation=True)]


class NotificationController(Controller):
    path = "/notifications"
    tags: ClassVar[list[str]] = ["notifications"]

    @get("/")
    async def list_notifications(
        self,
        notifications: Center,
        actor: CurrentActor,
        unread_only: bool = False,
        limit: Annotated[int | None, Parameter(ge=1)] = None,
        offset: Annotated[int, Parameter(ge=0)] = 0,
    ) -> NotificationListResponse:
        """The caller's notifications, newest first, with unread count."""
        items = await notifications.list_for_user(
            actor, unread_only=unread_only, limit=limit, offset=offset
        )
        return NotificationListResponse(
            items=[NotificationResponse.model_validate(n) for n in items],
            unread_count=await notifications.unread_count(actor),
        )

    @patch("/{notification_id:int}/read")
    async def mark_read(
        self,
        notification_id: int,
        notifications: Center,
        actor: CurrentActor,
    ) -> NotificationResponse:
        notification = await notifications.mark_read(notification_id, actor)
        return NotificationResponse.model_validate(notification)

    @patch("/mark-all-read")
    async def mark_all_read(
        self,
        notifications: Center,
        actor: CurrentActor,
    ) -> MarkAllReadResponse:
        return MarkAllReadResponse(
            updated=await notifications.mark_all_read(actor)
        )

    @delete("/{notification_id:int}")
    async def delete_notification(
        self,
        notification_id: int,
        notifications: Center,
        actor: CurrentActor,
    ) -> None:
        await notifications.delete(notification_id, actor)
