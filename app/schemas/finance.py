from typing import Optional
from pydantic import BaseModel, Field, ConfigDict
from uuid import UUID
from datetime import date
from decimal import Decimal

from app.models.enums import IncomeCategory, IncomeSource


class IncomeCreate(BaseModel):
    amount: Decimal
    income_date: date
    category: IncomeCategory = IncomeCategory.OTHER
    description: Optional[str] = Field(None, max_length=500)


class IncomeUpdate(BaseModel):
    amount: Optional[Decimal] = None
    income_date: Optional[date] = None
    category: Optional[IncomeCategory] = None
    description: Optional[str] = Field(None, max_length=500)


class IncomeResponse(BaseModel):
    id: UUID
    amount: Decimal
    income_date: date
    category: IncomeCategory
    description: Optional[str] = None
    source: IncomeSource
    payment_id: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)


class ExpenseCreate(BaseModel):
    expense_type: str = Field(..., min_length=1, max_length=100)
    amount: Decimal
    expense_date: date
    description: Optional[str] = Field(None, max_length=500)


class ExpenseUpdate(BaseModel):
    expense_type: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[Decimal] = None
    expense_date: Optional[date] = None
    description: Optional[str] = Field(None, max_length=500)


class ExpenseResponse(BaseModel):
    id: UUID
    expense_type: str
    amount: Decimal
    expense_date: date
    admin_id: UUID
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class MonthlyBucketResponse(BaseModel):
    month: int
    name: str
    income: Decimal
    expense: Decimal

    model_config = ConfigDict(from_attributes=True)


class YearBalanceResponse(BaseModel):
    year: int
    balance: Decimal


class FinancialSummaryResponse(BaseModel):
    year: int
    month: int
    monthly_income: Decimal
    monthly_expense: Decimal
    year_end_balance: Decimal

    model_config = ConfigDict(from_attributes=True)
