"""Litestar example app serving the courier API on a local SQLite file."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from litestar import Litestar

from litestar_courier.config import CourierConfig
from litestar_courier.contrib.sqlalchemy.database import (
    create_engine,
    create_session_factory,
    init_db,
)
from litestar_courier.plugin import create_courier_router

logging.basicConfig(level=logging.INFO)

config = CourierConfig()
engine = create_engine(config.database_url)
session_factory = create_session_factory(engine)


@asynccontextmanager
async def lifespan(app: Litestar) -> AsyncGenerator[None, None]:
    await init_db(engine)
    yield
    await engine.dispose()


app = Litestar(
    route_handlers=[
        create_courier_router(config=config, session_factory=session_factory)
    ],
    lifespan=[lifespan],
)
