"""Payment history endpoints."""

from __future__ import annotations

from typing import Annotated, ClassVar

from litestar import Controller, get, post
from litestar.params import Dependency, Parameter

from litestar_courier.dependencies import CurrentActor
from litestar_courier.payments import PaymentLedger
from litestar_courier.schemas import ManualPaymentRequest, PaymentRecordResponse

Ledger = Annotated[PaymentLedger, Dependency(skip_validation=True)]


class PaymentController(Controller):
    path = "/payments"
    tags: ClassVar[list[str]] = ["payments"]

    @get("/my-history")
    async def my_history(
        self,
        ledger: Ledger,
        actor: CurrentActor,
        limit: Annotated[int | None, Parameter(ge=1)] = None,
        offset: Annotated[int, Parameter(ge=0)] = 0,
    ) -> list[PaymentRecordResponse]:
        """Payment attempts made by the caller."""
        records = await ledger.list_for_user(actor, limit=limit, offset=offset)
        return [PaymentRecordResponse.model_validate(r) for r in records]

    @get("/history")
    async def history(
        self,
        ledger: Ledger,
        actor: CurrentActor,
        limit: Annotated[int | None, Parameter(ge=1)] = None,
        offset: Annotated[int, Parameter(ge=0)] = 0,
    ) -> list[PaymentRecordResponse]:
        """All payment attempts (admin only)."""
        records = await ledger.list_all(actor, limit=limit, offset=offset)
        return [PaymentRecordResponse.model_validate(r) for r in records]

    @post("/{shipment_id:int}/manual")
    async def mark_paid_manually(
        self,
        shipment_id: int,
        data: ManualPaymentRequest,
        ledger: Ledger,
        actor: CurrentActor,
    ) -> PaymentRecordResponse:
        """Confirm a payment collected outside the provider (admin only)."""
        record = await ledger.mark_paid_manually(
            shipment_id, actor, data.payment_method, notes=data.notes
        )
        return PaymentRecordResponse.model_validate(record)
