"""Public tracking endpoints."""

from __future__ import annotations

from typing import Annotated, ClassVar

from litestar import Controller, post
from litestar.params import Dependency
from litestar.status_codes import HTTP_200_OK

from litestar_courier.flow import ShipmentFlow
from litestar_courier.schemas import (
    ShipmentDetailResponse,
    TrackManyRequest,
    TrackManyResponse,
    TrackRequest,
)

Flow = Annotated[ShipmentFlow, Dependency(skip_validation=True)]


class TrackingController(Controller):
    """Anonymous shipment lookup by tracking id."""

    path = "/track"
    tags: ClassVar[list[str]] = ["tracking"]

    @post("/", status_code=HTTP_200_OK)
    async def track(
        self,
        data: TrackRequest,
        flow: Flow,
    ) -> ShipmentDetailResponse:
        """Return the shipment and its full history, newest first."""
        shipment = await flow.track(data.tracking_id)
        return ShipmentDetailResponse.from_shipment(shipment)

    @post("/multiple", status_code=HTTP_200_OK)
    async def track_many(
        self, data: TrackManyRequest, flow: Flow
    ) -> TrackManyResponse:
        """Look up several tracking ids; unknown ids are listed, not errors."""
        result = await flow.track_many(data.tracking_ids)
        return TrackManyResponse.from_result(result)
