"""Income ledger endpoints"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.models.enums import IncomeCategory
from app.schemas.finance import IncomeCreate, IncomeResponse, IncomeUpdate
from app.schemas.responses import PaginatedResponse, PaginationMeta, SuccessResponse
from app.services.finance_service import FinanceService

router = APIRouter()


@router.get("", response_model=PaginatedResponse[IncomeResponse])
async def list_incomes(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    category: Optional[IncomeCategory] = None,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Income rows, newest first, filtered by month, year and category."""
    items, total = await FinanceService.list_incomes(
        db, page=page, page_size=page_size, year=year, month=month, category=category
    )
    return PaginatedResponse(
        data=[IncomeResponse.model_validate(i) for i in items],
        meta=PaginationMeta.build(page, page_size, total),
    )


@router.post("", response_model=SuccessResponse[IncomeResponse], status_code=status.HTTP_201_CREATED)
async def create_income(
    body: IncomeCreate,
    actor_id: UUID = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Record income that did not come from a bill."""
    income = await FinanceService.create_income(
        db,
        actor_id=actor_id,
        amount=body.amount,
        income_date=body.income_date,
        category=body.category,
        description=body.description,
    )
    return SuccessResponse(data=IncomeResponse.model_validate(income), message="Income recorded")


@router.put("/{income_id}", response_model=SuccessResponse[IncomeResponse])
async def update_income(
    income_id: UUID,
    body: IncomeUpdate,
    actor_id: UUID = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Edit a manual income row. Rows derived from a paid bill are read-only."""
    income = await FinanceService.update_income(db, income_id, actor_id, **body.model_dump(exclude_unset=True))
    return SuccessResponse(data=IncomeResponse.model_validate(income), message="Income updated")


@router.delete("/{income_id}", response_model=SuccessResponse)
async def delete_income(
    income_id: UUID,
    actor_id: UUID = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await FinanceService.delete_income(db, income_id, actor_id)
    return SuccessResponse(data=None, message="Income deleted")
