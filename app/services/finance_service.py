"""Financial Aggregator - income derivation, ledger entries and period totals"""

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.errors import Conflict, ExpenseNotFound, IncomeNotFound
from app.core.logging import get_logger
from app.core.resilience import with_timeout
from app.models.enums import IncomeCategory, IncomeSource, PaymentStatus
from app.models.finance import Expense, Income
from app.models.payment import Payment
from app.services.bill_calculator import ZERO, money, storable_amount, to_decimal
from app.services.store import commit, fetch, flush

logger = get_logger(__name__)

MONTH_NAMES = [calendar.month_abbr[m] for m in range(1, 13)]


@dataclass(frozen=True)
class IncomeDraft:
    """One income component split out of a settled payment."""
    category: IncomeCategory
    amount: Decimal
    income_date: date
    description: Optional[str]


@dataclass(frozen=True)
class MonthlyBucket:
    month: int
    name: str
    income: Decimal
    expense: Decimal


@dataclass(frozen=True)
class FinancialSummary:
    year: int
    month: int
    monthly_income: Decimal
    monthly_expense: Decimal
    year_end_balance: Decimal


def _year_range(year: int) -> Tuple[date, date]:
    return date(year, 1, 1), date(year + 1, 1, 1)


def _month_range(year: int, month: int) -> Tuple[date, date]:
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def _room_description(payment: Payment) -> str:
    stay = payment.stay
    if stay is not None and stay.room is not None:
        tenant = stay.occupant.user_name if stay.occupant else "Unknown User"
        return f"Room {stay.room.room_num} ({tenant})"
    return "Room rent"


def split_payment_income(payment: Payment) -> List[IncomeDraft]:
    """
    Split a payment into its room and other income components.

    room = total - other_charge, kept when positive.
    other = other_charge, kept when positive and described.
    """
    total = to_decimal(payment.total, "total")
    other = to_decimal(payment.other_charge, "other_charge")
    drafts = []

    room_amount = money(total - other)
    if room_amount > 0:
        drafts.append(IncomeDraft(
            category=IncomeCategory.ROOM,
            amount=room_amount,
            income_date=payment.payment_date,
            description=_room_description(payment),
        ))

    description = (payment.other_description or "").strip()
    if other > 0 and description:
        drafts.append(IncomeDraft(
            category=IncomeCategory.OTHER,
            amount=money(other),
            income_date=payment.payment_date,
            description=description,
        ))
    return drafts


def _bucket_index(entry_date: date, year: Optional[int]) -> Optional[int]:
    if year is not None and entry_date.year != year:
        return None
    return entry_date.month - 1


def monthly_chart(
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    year: Optional[int] = None,
) -> List[MonthlyBucket]:
    """
    Bucket incomes and expenses into twelve calendar months.

    With ``year`` only that year's entries count; without it every year is
    folded onto its calendar month. Months without entries report zero.
    """
    income_totals = [ZERO] * 12
    expense_totals = [ZERO] * 12

    for income in incomes:
        idx = _bucket_index(income.income_date, year)
        if idx is not None:
            income_totals[idx] += to_decimal(income.amount, "amount")

    for expense in expenses:
        idx = _bucket_index(expense.expense_date, year)
        if idx is not None:
            expense_totals[idx] += to_decimal(expense.amount, "amount")

    return [
        MonthlyBucket(
            month=i + 1,
            name=MONTH_NAMES[i],
            income=money(income_totals[i]),
            expense=money(expense_totals[i]),
        )
        for i in range(12)
    ]


def _validate_amount(amount, field_name: str = "amount") -> Decimal:
    return money(storable_amount(amount, field_name))


class FinanceService:
    # --- Income derivation -------------------------------------------------

    @staticmethod
    async def derive_income(
        db: AsyncSession,
        payment: Payment,
        auto_commit: bool = True,
    ) -> List[Income]:
        """
        Persist the income rows of a paid payment.

        Rows are keyed by (payment_id, category); components that already exist
        are left untouched, so calling this again adds nothing.
        """
        if payment.status != PaymentStatus.PAID:
            raise Conflict("Income can only be derived from a paid payment")

        result = await fetch(
            db,
            select(Income).where(Income.payment_id == payment.id),
            "load derived income",
            in_transaction=not auto_commit,
        )
        existing = {row.category: row for row in result.scalars().all()}

        created = []
        for draft in split_payment_income(payment):
            if draft.category in existing:
                continue
            income = Income(
                amount=draft.amount,
                income_date=draft.income_date,
                category=draft.category,
                description=draft.description,
                source=IncomeSource.PAYMENT,
                payment_id=payment.id,
            )
            db.add(income)
            created.append(income)

        if created:
            conflict = "Income for this payment was derived concurrently"
            if auto_commit:
                await commit(db, "derive income", conflict)
            else:
                await flush(db, "derive income", conflict)
            logger.info(
                "Derived income from payment",
                extra={"payment_id": str(payment.id), "rows": len(created)},
            )

        return list(existing.values()) + created

    @staticmethod
    async def remove_derived_income(db: AsyncSession, payment_id: UUID) -> None:
        """Stage deletion of income rows derived from a payment (caller commits)."""
        await db.execute(
            delete(Income).where(
                Income.payment_id == payment_id,
                Income.source == IncomeSource.PAYMENT,
            )
        )

    # --- Income entries ----------------------------------------------------

    @staticmethod
    def _income_filters(
        year: Optional[int] = None,
        month: Optional[int] = None,
        category: Optional[IncomeCategory] = None,
    ) -> list:
        conditions = []
        if year is not None and month is not None:
            start, end = _month_range(year, month)
            conditions += [Income.income_date >= start, Income.income_date < end]
        elif year is not None:
            start, end = _year_range(year)
            conditions += [Income.income_date >= start, Income.income_date < end]
        elif month is not None:
            conditions.append(func.extract("month", Income.income_date) == month)
        if category is not None:
            conditions.append(Income.category == category)
        return conditions

    @staticmethod
    async def get_incomes(
        db: AsyncSession,
        year: Optional[int] = None,
        month: Optional[int] = None,
        category: Optional[IncomeCategory] = None,
    ) -> List[Income]:
        stmt = (
            select(Income)
            .where(*FinanceService._income_filters(year, month, category))
            .order_by(Income.income_date.desc(), Income.category)
        )
        result = await fetch(db, stmt, "list incomes")
        return list(result.scalars().all())

    @staticmethod
    async def list_incomes(
        db: AsyncSession,
        page: int = 1,
        page_size: int = 10,
        year: Optional[int] = None,
        month: Optional[int] = None,
        category: Optional[IncomeCategory] = None,
    ) -> Tuple[List[Income], int]:
        """Paginated income listing; returns (items, total count)."""
        conditions = FinanceService._income_filters(year, month, category)
        total = (await fetch(
            db,
            select(func.count()).select_from(Income).where(*conditions),
            "count incomes",
        )).scalar_one()
        result = await fetch(
            db,
            select(Income)
            .where(*conditions)
            .order_by(Income.income_date.desc(), Income.category)
            .offset((page - 1) * page_size)
            .limit(page_size),
            "list incomes",
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def get_income(db: AsyncSession, income_id: UUID) -> Income:
        result = await fetch(db, select(Income).where(Income.id == income_id), "load income")
        income = result.scalar_one_or_none()
        if income is None:
            raise IncomeNotFound(income_id)
        return income

    @staticmethod
    async def create_income(
        db: AsyncSession,
        actor_id: UUID,
        amount,
        income_date: date,
        category: IncomeCategory = IncomeCategory.OTHER,
        description: Optional[str] = None,
    ) -> Income:
        """Record income that did not come from a bill (e.g. a deposit kept)."""
        income = Income(
            amount=_validate_amount(amount),
            income_date=income_date,
            category=category,
            description=description,
            source=IncomeSource.MANUAL,
        )
        db.add(income)
        await commit(db, "create income", "Income could not be recorded")
        logger.info(
            "Manual income recorded",
            extra={"income_id": str(income.id), "admin_id": str(actor_id)},
        )
        return income

    @staticmethod
    async def update_income(db: AsyncSession, income_id: UUID, actor_id: UUID, **changes) -> Income:
        income = await FinanceService.get_income(db, income_id)
        if income.is_derived:
            raise Conflict("Income derived from a payment cannot be edited")
        if changes.get("amount") is not None:
            income.amount = _validate_amount(changes["amount"])
        for field_name in ("income_date", "category", "description"):
            if changes.get(field_name) is not None:
                setattr(income, field_name, changes[field_name])
        await commit(db, "update income", "Income could not be updated")
        logger.info(
            "Manual income updated",
            extra={"income_id": str(income_id), "admin_id": str(actor_id)},
        )
        return income

    @staticmethod
    async def delete_income(db: AsyncSession, income_id: UUID, actor_id: UUID) -> None:
        income = await FinanceService.get_income(db, income_id)
        if income.is_derived:
            raise Conflict("Income derived from a payment cannot be deleted")
        await db.delete(income)
        await commit(db, "delete income", "Income could not be deleted")
        logger.info(
            "Manual income deleted",
            extra={"income_id": str(income_id), "admin_id": str(actor_id)},
        )

    # --- Expense entries ---------------------------------------------------

    @staticmethod
    async def get_expenses(
        db: AsyncSession,
        year: Optional[int] = None,
        month: Optional[int] = None,
        expense_type: Optional[str] = None,
    ) -> List[Expense]:
        stmt = select(Expense)
        if year is not None and month is not None:
            start, end = _month_range(year, month)
            stmt = stmt.where(Expense.expense_date >= start, Expense.expense_date < end)
        elif year is not None:
            start, end = _year_range(year)
            stmt = stmt.where(Expense.expense_date >= start, Expense.expense_date < end)
        elif month is not None:
            stmt = stmt.where(func.extract("month", Expense.expense_date) == month)
        if expense_type:
            stmt = stmt.where(Expense.expense_type == expense_type)
        result = await fetch(db, stmt.order_by(Expense.expense_date.desc()), "list expenses")
        return list(result.scalars().all())

    @staticmethod
    async def get_expense(db: AsyncSession, expense_id: UUID) -> Expense:
        result = await fetch(db, select(Expense).where(Expense.id == expense_id), "load expense")
        expense = result.scalar_one_or_none()
        if expense is None:
            raise ExpenseNotFound(expense_id)
        return expense

    @staticmethod
    async def create_expense(
        db: AsyncSession,
        actor_id: UUID,
        expense_type: str,
        amount,
        expense_date: date,
        description: Optional[str] = None,
    ) -> Expense:
        expense = Expense(
            expense_type=expense_type,
            amount=_validate_amount(amount),
            expense_date=expense_date,
            admin_id=actor_id,
            description=description,
        )
        db.add(expense)
        await commit(db, "create expense", "Expense could not be recorded")
        logger.info(
            "Expense recorded",
            extra={"expense_id": str(expense.id), "admin_id": str(actor_id)},
        )
        return expense

    @staticmethod
    async def update_expense(db: AsyncSession, expense_id: UUID, actor_id: UUID, **changes) -> Expense:
        expense = await FinanceService.get_expense(db, expense_id)
        if changes.get("amount") is not None:
            expense.amount = _validate_amount(changes["amount"])
        for field_name in ("expense_type", "expense_date", "description"):
            if changes.get(field_name) is not None:
                setattr(expense, field_name, changes[field_name])
        expense.admin_id = actor_id
        await commit(db, "update expense", "Expense could not be updated")
        return expense

    @staticmethod
    async def delete_expense(db: AsyncSession, expense_id: UUID, actor_id: UUID) -> None:
        expense = await FinanceService.get_expense(db, expense_id)
        await db.delete(expense)
        await commit(db, "delete expense", "Expense could not be deleted")
        logger.info(
            "Expense deleted",
            extra={"expense_id": str(expense_id), "admin_id": str(actor_id)},
        )

    # --- Aggregates --------------------------------------------------------

    @staticmethod
    async def _sum_amounts(db: AsyncSession, column, date_column, start: date, end: date, what: str) -> Decimal:
        # Summed in Python, in Decimal
        result = await fetch(
            db,
            select(column).where(date_column >= start, date_column < end),
            what,
        )
        return money(sum((to_decimal(a) for a in result.scalars().all()), ZERO))

    @staticmethod
    async def income_total(db: AsyncSession, year: int, month: Optional[int] = None) -> Decimal:
        start, end = _month_range(year, month) if month else _year_range(year)
        return await FinanceService._sum_amounts(
            db, Income.amount, Income.income_date, start, end, "sum income"
        )

    @staticmethod
    async def expense_total(db: AsyncSession, year: int, month: Optional[int] = None) -> Decimal:
        start, end = _month_range(year, month) if month else _year_range(year)
        return await FinanceService._sum_amounts(
            db, Expense.amount, Expense.expense_date, start, end, "sum expense"
        )

    @staticmethod
    async def year_end_balance(db: AsyncSession, year: int, timeout: Optional[float] = None) -> Decimal:
        """Income minus expense for ``year``."""

        async def compute() -> Decimal:
            income = await FinanceService.income_total(db, year)
            expense = await FinanceService.expense_total(db, year)
            return income - expense

        return await with_timeout(
            compute(), timeout or settings.AGGREGATE_TIMEOUT_SECONDS, "year-end balance"
        )

    @staticmethod
    async def chart(
        db: AsyncSession,
        year: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> List[MonthlyBucket]:
        async def compute() -> List[MonthlyBucket]:
            incomes = await FinanceService.get_incomes(db, year=year)
            expenses = await FinanceService.get_expenses(db, year=year)
            return monthly_chart(incomes, expenses, year)

        return await with_timeout(
            compute(), timeout or settings.AGGREGATE_TIMEOUT_SECONDS, "monthly chart"
        )

    @staticmethod
    async def summary(
        db: AsyncSession,
        year: int,
        month: int,
        timeout: Optional[float] = None,
    ) -> FinancialSummary:
        """This month's income and expense next to the year-to-date balance."""

        async def compute() -> FinancialSummary:
            monthly_income = await FinanceService.income_total(db, year, month)
            monthly_expense = await FinanceService.expense_total(db, year, month)
            income = await FinanceService.income_total(db, year)
            expense = await FinanceService.expense_total(db, year)
            return FinancialSummary(
                year=year,
                month=month,
                monthly_income=monthly_income,
                monthly_expense=monthly_expense,
                year_end_balance=income - expense,
            )

        return await with_timeout(
            compute(), timeout or settings.AGGREGATE_TIMEOUT_SECONDS, "financial summary"
        )
