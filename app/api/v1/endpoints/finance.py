"""Financial reporting endpoints - chart, balance and monthly summary"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.schemas.finance import FinancialSummaryResponse, MonthlyBucketResponse, YearBalanceResponse
from app.schemas.responses import SuccessResponse
from app.services.finance_service import FinanceService
from app.utils.time import get_utc_today

router = APIRouter()


@router.get("/chart", response_model=SuccessResponse[list[MonthlyBucketResponse]])
async def monthly_chart(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Income and expense per calendar month; without a year all years are folded together."""
    buckets = await FinanceService.chart(db, year=year)
    return SuccessResponse(data=[MonthlyBucketResponse.model_validate(b) for b in buckets])


@router.get("/balance/{year}", response_model=SuccessResponse[YearBalanceResponse])
async def year_end_balance(year: int, db: AsyncSession = Depends(deps.get_db)) -> Any:
    balance = await FinanceService.year_end_balance(db, year)
    return SuccessResponse(data=YearBalanceResponse(year=year, balance=balance))


@router.get("/summary", response_model=SuccessResponse[FinancialSummaryResponse])
async def financial_summary(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """This month's income and expense next to the year's balance. Defaults to the current month."""
    today = get_utc_today()
    summary = await FinanceService.summary(db, year or today.year, month or today.month)
    return SuccessResponse(data=FinancialSummaryResponse.model_validate(summary))
