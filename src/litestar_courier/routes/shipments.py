"""Shipment endpoints."""

from __future__ import annotations

from typing import Annotated, ClassVar

from litestar import Controller, get, patch, post
from litestar.params import Dependency, Parameter

from litestar_courier.actors import require_actor
from litestar_courier.dependencies import CurrentActor
from litestar_courier.flow import BulkOutcome, ShipmentFlow
from litestar_courier.schemas import (
    BulkStatusUpdateRequest,
    BulkStatusUpdateResponse,
    CreateShipmentRequest,
    ShipmentDetailResponse,
    ShipmentResponse,
    ShipmentSummaryResponse,
    StatusUpdateRequest,
)

Flow = Annotated[ShipmentFlow, Dependency(skip_validation=True)]


class ShipmentController(Controller):
    """Shipment endpoints: creation, listing and status changes."""

    path = "/shipments"
    tags: ClassVar[list[str]] = ["shipments"]

    @get("/health")
    async def shipments_health(self) -> dict[str, str]:
        """Healthcheck endpoint for shipment routes."""
        return {"status": "ok"}

    @get("/stats")
    async def shipment_stats(
        self, flow: Flow, actor: CurrentActor
    ) -> ShipmentSummaryResponse:
        """Dashboard counters for the caller.

        Staff get totals over every shipment, customers over their own.
        """
        summary = await flow.summary(actor)
        return ShipmentSummaryResponse.model_validate(summary)

    @post("/")
    async def create_shipment(
        self,
        data: CreateShipmentRequest,
        flow: Flow,
        actor: CurrentActor,
    ) -> ShipmentResponse:
        """Create a pending shipment owned by the caller."""
        shipment = await flow.create_shipment(data, actor)
        return ShipmentResponse.from_shipment(shipment)

    @get("/")
    async def list_shipments(
        self,
        flow: Flow,
        actor: CurrentActor,
        search: str | None = None,
        status: str | None = None,
        limit: Annotated[int | None, Parameter(ge=1)] = None,
        offset: Annotated[int, Parameter(ge=0)] = 0,
    ) -> list[ShipmentResponse]:
        """List shipments visible to the caller, newest first."""
        shipments = await flow.list_shipments(
            actor, search=search, status=status, limit=limit, offset=offset
        )
        return [ShipmentResponse.from_shipment(s) for s in shipments]

    @get("/{shipment_id:int}")
    async def get_shipment(
        self,
        shipment_id: int,
        flow: Flow,
        actor: CurrentActor,
    ) -> ShipmentDetailResponse:
        """Shipment detail with its status history."""
        shipment = await flow.get_shipment(shipment_id, actor)
        return ShipmentDetailResponse.from_shipment(shipment)

    @patch("/{shipment_id:int}/status")
    async def update_status(
        self,
        shipment_id: int,
        data: StatusUpdateRequest,
        flow: Flow,
        actor: CurrentActor,
    ) -> ShipmentResponse:
        """Change one shipment's status (staff only)."""
        # Anonymous callers must not pass as system-originated changes.
        actor = require_actor(actor)
        shipment = await flow.update_status(
            shipment_id,
            data.status,
            location=data.location,
            notes=data.notes,
            actor=actor,
        )
        return ShipmentResponse.from_shipment(shipment)

    @patch("/bulk-update-status")
    async def bulk_update_status(
        self,
        data: BulkStatusUpdateRequest,
        flow: Flow,
        actor: CurrentActor,
    ) -> BulkStatusUpdateResponse:
        """Change many shipments' status (staff only), best effort."""
        actor = require_actor(actor)
        result = await flow.bulk_update_status(
            data.shipment_ids,
            data.status,
            location=data.location,
            notes=data.notes,
            actor=actor,
        )
        return BulkStatusUpdateResponse(
            updated=result.updated_count,
            skipped=result.ids_with(BulkOutcome.SKIPPED),
            failed=result.ids_with(BulkOutcome.FAILED),
        )
