"""Router factory for litestar-courier."""

from __future__ import annotations

from litestar import Router
from litestar.di import Provide
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from litestar_courier.actors import HeaderActorResolver
from litestar_courier.config import CourierConfig
from litestar_courier.dependencies import (
    provide_actor,
    provide_location_registry,
    provide_notification_center,
    provide_payment_ledger,
    provide_shipment_flow,
)
from litestar_courier.exceptions import EXCEPTION_HANDLERS
from litestar_courier.protocols import ActorResolver
from litestar_courier.routes.locations import LocationController
from litestar_courier.routes.notifications import NotificationController
from litestar_courier.routes.payments import PaymentController
from litestar_courier.routes.shipments import ShipmentController
from litestar_courier.routes.tracking import TrackingController


def create_courier_router(
    *,
    config: CourierConfig,
    session_factory: async_sessionmaker[AsyncSession],
    actor_resolver: ActorResolver | None = None,
) -> Router:
    """Create a configured Litestar router.

    Args:
        config: Courier configuration.
        session_factory: Async session factory; must be created with
            ``expire_on_commit=False``.
        actor_resolver: Resolves the calling user from a request.
            Defaults to :class:`HeaderActorResolver`.

    Returns:
        A Litestar Router with all courier endpoints.
    """
    actual_resolver = actor_resolver or HeaderActorResolver()

    return Router(
        path="/",
        route_handlers=[
            ShipmentController,
            TrackingController,
            NotificationController,
            PaymentController,
            LocationController,
        ],
        dependencies={
            "config": Provide(lambda: config, sync_to_thread=False),
            "session_factory": Provide(
                lambda: session_factory, sync_to_thread=False
            ),
            "actor_resolver": Provide(
                lambda: actual_resolver, sync_to_thread=False
            ),
            "actor": Provide(provide_actor),
            "flow": Provide(provide_shipment_flow, sync_to_thread=False),
            "notifications": Provide(
                provide_notification_center, sync_to_thread=False
            ),
            "ledger": Provide(provide_payment_ledger, sync_to_thread=False),
            "locations": Provide(
                provide_location_registry, sync_to_thread=False
            ),
        },
        exception_handlers=EXCEPTION_HANDLERS,
    )
