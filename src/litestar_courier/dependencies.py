"""Dependency providers wired into the courier router."""

from __future__ import annotations

from typing import Annotated

from litestar import Request
from litestar.params import Dependency
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from litestar_courier.actors import Actor
from litestar_courier.config import CourierConfig
from litestar_courier.flow import ShipmentFlow
from litestar_courier.locations import LocationRegistry
from litestar_courier.notifications import NotificationCenter
from litestar_courier.payments import PaymentLedger
from litestar_courier.protocols import ActorResolver

SessionFactory = Annotated[
    async_sessionmaker[AsyncSession], Dependency(skip_validation=True)
]
Config = Annotated[CourierConfig, Dependency(skip_validation=True)]
CurrentActor = Annotated[Actor | None, Dependency(skip_validation=True)]


async def provide_actor(
    request: Request,
    actor_resolver: Annotated[ActorResolver, Dependency(skip_validation=True)],
) -> Actor | None:
    return await actor_resolver.resolve(request)


def provide_shipment_flow(
    session_factory: SessionFactory, config: Config
) -> ShipmentFlow:
    return ShipmentFlow(session_factory=session_factory, config=config)


def provide_notification_center(
    session_factory: SessionFactory, config: Config
) -> NotificationCenter:
    return NotificationCenter(session_factory=session_factory, config=config)


def provide_payment_ledger(
    session_factory: SessionFactory, config: Config
) -> PaymentLedger:
    return PaymentLedger(session_factory=session_factory, config=config)


def provide_location_registry(
    session_factory: SessionFactory, config: Config
) -> LocationRegistry:
    return LocationRegistry(session_factory=session_factory, config=config)
