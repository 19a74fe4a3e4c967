"""Payment ledger endpoints - issue, correct and settle bills"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.schemas.payment import (
    BillBreakdownResponse,
    PaymentCreate,
    PaymentPreviewRequest,
    PaymentResponse,
    PaymentStatusUpdate,
    PaymentUpdate,
)
from app.schemas.responses import SuccessResponse
from app.services.bill_calculator import MeterReadings
from app.services.payment_service import PaymentCorrection, PaymentService

router = APIRouter()


@router.post("/preview", response_model=SuccessResponse[BillBreakdownResponse])
async def preview_payment(
    body: PaymentPreviewRequest,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Price a bill with current rates without issuing it."""
    breakdown = await PaymentService.preview(
        db,
        body.stay_id,
        MeterReadings.of(body.water_units, body.ele_units),
        body.other_charge,
    )
    return SuccessResponse(data=BillBreakdownResponse.model_validate(breakdown))


@router.post("", response_model=SuccessResponse[PaymentResponse], status_code=status.HTTP_201_CREATED)
async def create_payment(
    body: PaymentCreate,
    actor_id: UUID = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Issue an unpaid bill for the stay's billing month. One bill per stay per month."""
    payment = await PaymentService.create_payment(
        db,
        stay_id=body.stay_id,
        actor_id=actor_id,
        readings=MeterReadings.of(body.water_units, body.ele_units),
        issue_date=body.payment_date,
        other_charge=body.other_charge,
        other_description=body.other_description,
    )
    return SuccessResponse(
        data=PaymentResponse.from_payment(payment),
        message="Payment created successfully",
    )


@router.get("", response_model=SuccessResponse[list[PaymentResponse]])
async def list_payments(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1900, le=9999),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    payments = await PaymentService.list_by_period(db, month=month, year=year)
    return SuccessResponse(data=[PaymentResponse.from_payment(p) for p in payments])


@router.get("/{payment_id}", response_model=SuccessResponse[PaymentResponse])
async def get_payment(payment_id: UUID, db: AsyncSession = Depends(deps.get_db)) -> Any:
    payment = await PaymentService.get_payment(db, payment_id)
    return SuccessResponse(data=PaymentResponse.from_payment(payment))


@router.patch("/{payment_id}", response_model=SuccessResponse[PaymentResponse])
async def correct_payment(
    payment_id: UUID,
    body: PaymentUpdate,
    actor_id: UUID = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Correct readings, other charge or date of a bill that is not paid yet."""
    payment = await PaymentService.update_payment(
        db,
        payment_id,
        PaymentCorrection(**body.model_dump(exclude_unset=True)),
        actor_id,
    )
    return SuccessResponse(
        data=PaymentResponse.from_payment(payment),
        message="Payment updated successfully",
    )


@router.put("/{payment_id}/status", response_model=SuccessResponse[PaymentResponse])
async def update_payment_status(
    payment_id: UUID,
    body: PaymentStatusUpdate,
    actor_id: UUID = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Move a bill to processing or paid. Marking it paid records its income."""
    payment = await PaymentService.update_status(db, payment_id, body.status, actor_id)
    return SuccessResponse(
        data=PaymentResponse.from_payment(payment),
        message=f"Payment is {payment.status.value}",
    )


@router.delete("/{payment_id}", response_model=SuccessResponse)
async def delete_payment(
    payment_id: UUID,
    actor_id: UUID = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Delete an unpaid bill with its slips. Paid bills cannot be deleted."""
    await PaymentService.delete_payment(db, payment_id, actor_id)
    return SuccessResponse(data=None, message="Payment deleted successfully")
