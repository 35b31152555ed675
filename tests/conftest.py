"""Shared fixtures for litestar-courier tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from decimal import Decimal
from typing import Any

import pytest
from litestar import Litestar
from litestar.testing import AsyncTestClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from litestar_courier.actors import Actor
from litestar_courier.config import CourierConfig
from litestar_courier.contrib.sqlalchemy.database import (
    create_engine,
    create_session_factory,
    init_db,
)
from litestar_courier.contrib.sqlalchemy.models import (
    LocationModel,
    ShipmentModel,
    UserModel,
)
from litestar_courier.flow import ShipmentFlow
from litestar_courier.locations import LocationRegistry
from litestar_courier.notifications import NotificationCenter
from litestar_courier.payments import PaymentLedger
from litestar_courier.plugin import create_courier_router
from litestar_courier.schemas import CreateShipmentRequest

SENDER = Actor(user_id=1, roles=frozenset({"customer"}))
OTHER_CUSTOMER = Actor(user_id=2, roles=frozenset({"customer"}))
STAFF = Actor(user_id=3, roles=frozenset({"staff"}))
ADMIN = Actor(user_id=4, roles=frozenset({"admin"}))

ORIGIN_ID = 1
DESTINATION_ID = 2


def headers_for(actor: Actor | None) -> dict[str, str]:
    """Headers understood by HeaderActorResolver."""
    if actor is None:
        return {}
    return {
        "X-User-Id": str(actor.user_id),
        "X-User-Roles": ",".join(sorted(actor.roles)),
    }


def shipment_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "recipient_name": "Ada Lovelace",
        "recipient_phone": "+15550100",
        "recipient_email": "ada@example.com",
        "recipient_address": "12 Analytical Way, London",
        "origin_location_id": ORIGIN_ID,
        "destination_location_id": DESTINATION_ID,
        "description": "Difference engine parts",
        "weight": "2.50",
        "service_type": "express",
        "price": "49.90",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def config() -> CourierConfig:
    return CourierConfig()


@pytest.fixture()
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    factory = create_session_factory(engine)
    async with factory() as session, session.begin():
        session.add_all(
            [
                UserModel(id=1, name="Sender", email="sender@example.com"),
                UserModel(id=2, name="Other", email="other@example.com"),
                UserModel(id=3, name="Staff", email="staff@example.com"),
                UserModel(id=4, name="Admin", email="admin@example.com"),
                LocationModel(
                    id=ORIGIN_ID,
                    name="Central Depot",
                    street="1 Main St",
                    city="Springfield",
                    state="IL",
                    postal_code="62701",
                    country="US",
                    latitude=Decimal("39.78172100"),
                    longitude=Decimal("-89.65014800"),
                ),
                LocationModel(
                    id=DESTINATION_ID,
                    name="North Hub",
                    street="200 Lake Rd",
                    city="Chicago",
                    country="US",
                ),
            ]
        )
    return factory


@pytest.fixture()
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
def flow(
    session_factory: async_sessionmaker[AsyncSession], config: CourierConfig
) -> ShipmentFlow:
    return ShipmentFlow(session_factory=session_factory, config=config)


@pytest.fixture()
def notifications(
    session_factory: async_sessionmaker[AsyncSession], config: CourierConfig
) -> NotificationCenter:
    return NotificationCenter(session_factory=session_factory, config=config)


@pytest.fixture()
def ledger(
    session_factory: async_sessionmaker[AsyncSession], config: CourierConfig
) -> PaymentLedger:
    return PaymentLedger(session_factory=session_factory, config=config)


@pytest.fixture()
def locations(
    session_factory: async_sessionmaker[AsyncSession], config: CourierConfig
) -> LocationRegistry:
    return LocationRegistry(session_factory=session_factory, config=config)


@pytest.fixture()
def make_shipment(
    flow: ShipmentFlow,
) -> Callable[..., Awaitable[ShipmentModel]]:
    """Create a shipment owned by SENDER unless told otherwise."""

    async def _make(
        actor: Actor = SENDER, **overrides: Any
    ) -> ShipmentModel:
        data = CreateShipmentRequest(**shipment_payload(**overrides))
        return await flow.create_shipment(data, actor)

    return _make


@pytest.fixture()
def test_app(
    config: CourierConfig,
    session_factory: async_sessionmaker[AsyncSession],
) -> Litestar:
    router = create_courier_router(
        config=config, session_factory=session_factory
    )
    return Litestar(route_handlers=[router])


@pytest.fixture()
async def client(test_app: Litestar) -> AsyncIterator[AsyncTestClient]:
    async with AsyncTestClient(app=test_app) as tc:
        yield tc
