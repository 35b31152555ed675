"""Location endpoints."""

from __future__ import annotations

from typing import Annotated, ClassVar

from litestar import Controller, get, post
from litestar.params import Dependency

from litestar_courier.actors import require_actor
from litestar_courier.dependencies import CurrentActor
from litestar_courier.locations import LocationRegistry
from litestar_courier.schemas import CreateLocationRequest, LocationResponse

Registry = Annotated[LocationRegistry, Dependency(skip_validation=True)]


class LocationController(Controller):
    path = "/locations"
    tags: ClassVar[list[str]] = ["locations"]

    @get("/")
    async def list_locations(
        self, locations: Registry, actor: CurrentActor
    ) -> list[LocationResponse]:
        require_actor(actor)
        return [
            LocationResponse.model_validate(location)
            for location in await locations.list_locations()
        ]

    @post("/")
    async def create_location(
        self,
        data: CreateLocationRequest,
        locations: Registry,
        actor: CurrentActor,
    ) -> LocationResponse:
        """Register a location (admin only)."""
        location = await locations.create(data, actor)
        return LocationResponse.model_validate(location)
