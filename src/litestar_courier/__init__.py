# src/litestar_courier/__init__.py
"""Courier shipment tracking for Litestar."""

from typing import TYPE_CHECKING

__version__ = "0.1.0"

__all__ = [
    "Actor",
    "ActorResolver",
    "CourierConfig",
    "CreateShipmentRequest",
    "HeaderActorResolver",
    "LocationRegistry",
    "NotificationCenter",
    "PaymentLedger",
    "ShipmentFlow",
    "ShipmentNotFoundError",
    "ShipmentResponse",
    "ShipmentStatus",
    "TrackingNotFoundError",
    "__version__",
    "create_courier_router",
]

if TYPE_CHECKING:
    from litestar_courier.actors import Actor, HeaderActorResolver
    from litestar_courier.config import CourierConfig
    from litestar_courier.enums import ShipmentStatus
    from litestar_courier.exceptions import (
        ShipmentNotFoundError,
        TrackingNotFoundError,
    )
    from litestar_courier.flow import ShipmentFlow
    from litestar_courier.locations import LocationRegistry
    from litestar_courier.notifications import NotificationCenter
    from litestar_courier.payments import PaymentLedger
    from litestar_courier.plugin import create_courier_router
    from litestar_courier.protocols import ActorResolver
    from litestar_courier.schemas import (
        CreateShipmentRequest,
        ShipmentResponse,
    )


def __getattr__(name: str):
    # Lazy imports to avoid loading all submodules on package import.
    if name == "CourierConfig":
        from litestar_courier.config import CourierConfig

        return CourierConfig
    if name == "create_courier_router":
        from litestar_courier.plugin import create_courier_router

        return create_courier_router
    if name == "ShipmentFlow":
        from litestar_courier.flow import ShipmentFlow

        return ShipmentFlow
    if name == "NotificationCenter":
        from litestar_courier.notifications import NotificationCenter

        return NotificationCenter
    if name == "PaymentLedger":
        from litestar_courier.payments import PaymentLedger

        return PaymentLedger
    if name == "LocationRegistry":
        from litestar_courier.locations import LocationRegistry

        return LocationRegistry
    if name == "ShipmentStatus":
        from litestar_courier.enums import ShipmentStatus

        return ShipmentStatus
    if name in ("ShipmentNotFoundError", "TrackingNotFoundError"):
        from litestar_courier import exceptions

        return getattr(exceptions, name)
    if name in ("Actor", "HeaderActorResolver"):
        from litestar_courier import actors

        return getattr(actors, name)
    if name == "ActorResolver":
        from litestar_courier.protocols import ActorResolver

        return ActorResolver
    if name in ("CreateShipmentRequest", "ShipmentResponse"):
        from litestar_courier import schemas

        return getattr(schemas, name)
    raise AttributeError(
        f"module 'litestar_courier' has no attribute {name!r}"
    )
