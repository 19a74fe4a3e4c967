"""Stay registry endpoints - read-only view of stays and bill types"""

from typing import Any, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.models.enums import StayStatus
from app.schemas.payment import PaymentResponse
from app.schemas.responses import SuccessResponse
from app.schemas.stay import BillTypeResponse, StayResponse
from app.services.payment_service import PaymentService
from app.services.stay_service import StayService

router = APIRouter()


@router.get("", response_model=SuccessResponse[list[StayResponse]])
async def list_stays(
    stay_status: Optional[StayStatus] = None,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """List stays, optionally filtered by status."""
    stays = await StayService.list_stays(db, stay_status)
    return SuccessResponse(data=[StayResponse.model_validate(s) for s in stays])


@router.get("/bill-types", response_model=SuccessResponse[list[BillTypeResponse]])
async def list_bill_types(db: AsyncSession = Depends(deps.get_db)) -> Any:
    """Unit prices the rate catalog is built from."""
    bill_types = await StayService.list_bill_types(db)
    return SuccessResponse(data=[BillTypeResponse.model_validate(b) for b in bill_types])


@router.get("/{stay_id}", response_model=SuccessResponse[StayResponse])
async def get_stay(stay_id: UUID, db: AsyncSession = Depends(deps.get_db)) -> Any:
    stay = await StayService.get_stay(db, stay_id)
    return SuccessResponse(data=StayResponse.model_validate(stay))


@router.get("/{stay_id}/payments", response_model=SuccessResponse[list[PaymentResponse]])
async def list_stay_payments(stay_id: UUID, db: AsyncSession = Depends(deps.get_db)) -> Any:
    """All bills issued for a stay, newest first."""
    await StayService.get_stay(db, stay_id)
    payments = await PaymentService.list_by_stay(db, stay_id)
    return SuccessResponse(data=[PaymentResponse.from_payment(p) for p in payments])
