"""Location registry."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from litestar_courier.actors import Actor, require_role
from litestar_courier.config import CourierConfig
from litestar_courier.contrib.sqlalchemy.models import LocationModel
from litestar_courier.contrib.sqlalchemy.repository import (
    SQLAlchemyLocationRepository,
)
from litestar_courier.exceptions import LocationNotFoundError
from litestar_courier.schemas import CreateLocationRequest

logger = logging.getLogger(__name__)


class LocationRegistry:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: CourierConfig | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.config = config or CourierConfig()

    async def create(
        self, data: CreateLocationRequest, actor: Actor | None
    ) -> LocationModel:
        """Register a location; admins only."""
        require_role(actor, self.config.admin_roles)
        async with self._session_factory() as session, session.begin():
            location = await SQLAlchemyLocationRepository(session).add(
                LocationModel(**data.model_dump())
            )
        logger.info("Location %s registered: %s", location.id, location.name)
        return location

    async def get(self, location_id: int) -> LocationModel:
        async with self._session_factory() as session:
            location = await SQLAlchemyLocationRepository(session).get_by_id(
                location_id
            )
        if location is None:
            raise LocationNotFoundError(location_id)
        return location

    async def list_locations(self) -> list[LocationModel]:
        """All locations ordered by city."""
        async with self._session_factory() as session:
            return await SQLAlchemyLocationRepository(session).list_all()
