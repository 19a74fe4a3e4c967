"""Expense ledger endpoints"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.schemas.finance import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from app.schemas.responses import SuccessResponse
from app.services.finance_service import FinanceService

router = APIRouter()


@router.get("", response_model=SuccessResponse[list[ExpenseResponse]])
async def list_expenses(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    expense_type: Optional[str] = None,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    expenses = await FinanceService.get_expenses(db, year=year, month=month, expense_type=expense_type)
    return SuccessResponse(data=[ExpenseResponse.model_validate(e) for e in expenses])


@router.post("", response_model=SuccessResponse[ExpenseResponse], status_code=status.HTTP_201_CREATED)
async def create_expense(
    body: ExpenseCreate,
    actor_id: UUID = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    expense = await FinanceService.create_expense(
        db,
        actor_id=actor_id,
        expense_type=body.expense_type,
        amount=body.amount,
        expense_date=body.expense_date,
        description=body.description,
    )
    return SuccessResponse(data=ExpenseResponse.model_validate(expense), message="Expense recorded")


@router.put("/{expense_id}", response_model=SuccessResponse[ExpenseResponse])
async def update_expense(
    expense_id: UUID,
    body: ExpenseUpdate,
    actor_id: UUID = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    expense = await FinanceService.update_expense(
        db, expense_id, actor_id, **body.model_dump(exclude_unset=True)
    )
    return SuccessResponse(data=ExpenseResponse.model_validate(expense), message="Expense updated")


@router.delete("/{expense_id}", response_model=SuccessResponse)
async def delete_expense(
    expense_id: UUID,
    actor_id: UUID = Depends(deps.get_current_actor),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await FinanceService.delete_expense(db, expense_id, actor_id)
    return SuccessResponse(data=None, message="Expense deleted")
