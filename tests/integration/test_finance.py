"""Integration tests: income, expenses and period aggregates."""

import asyncio
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from app.core.errors import Conflict, ExpenseNotFound, IncomeNotFound, InvalidQuantity, Timeout
from app.models import Income, IncomeCategory, IncomeSource, PaymentStatus
from app.services.bill_calculator import MeterReadings
from app.services.finance_service import FinanceService
from app.services.payment_service import PaymentService


async def _paid_bill(db, seeded, admin_id, on, other=0, description=None):
    payment = await PaymentService.create_payment(
        db,
        stay_id=seeded["stay_id"],
        actor_id=admin_id,
        readings=MeterReadings.of(10, 40),
        issue_date=on,
        other_charge=other,
        other_description=description,
    )
    return await PaymentService.update_status(db, payment.id, PaymentStatus.PAID, admin_id)


@pytest.mark.asyncio
async def test_paid_bill_raises_year_end_balance(db, seeded, admin_id):
    year = 2025
    before = await FinanceService.year_end_balance(db, year)
    await _paid_bill(db, seeded, admin_id, date(year, 3, 1))
    after = await FinanceService.year_end_balance(db, year)
    assert after - before == Decimal("3960")


@pytest.mark.asyncio
async def test_unpaid_bill_contributes_nothing(db, seeded, admin_id):
    await PaymentService.create_payment(
        db, seeded["stay_id"], admin_id, MeterReadings.of(10, 40), date(2025, 3, 1)
    )
    assert await FinanceService.year_end_balance(db, 2025) == Decimal("0")


@pytest.mark.asyncio
async def test_derived_income_rows(db, seeded, admin_id):
    payment = await _paid_bill(db, seeded, admin_id, date(2025, 4, 2), other=150, description="Laundry")
    rows = (await db.execute(select(Income).where(Income.payment_id == payment.id))).scalars().all()
    by_category = {row.category: row for row in rows}
    assert by_category[IncomeCategory.ROOM].amount == Decimal("3960")
    assert by_category[IncomeCategory.ROOM].description == "Room A101 (Somchai)"
    assert by_category[IncomeCategory.OTHER].amount == Decimal("150")
    assert all(row.source == IncomeSource.PAYMENT for row in rows)
    assert all(row.income_date == date(2025, 4, 2) for row in rows)


@pytest.mark.asyncio
async def test_balance_subtracts_expenses(db, seeded, admin_id):
    await _paid_bill(db, seeded, admin_id, date(2025, 1, 10))
    await FinanceService.create_expense(db, admin_id, "Repairs", Decimal("460.50"), date(2025, 2, 1))
    await FinanceService.create_expense(db, admin_id, "Repairs", Decimal("999"), date(2024, 12, 31))
    assert await FinanceService.year_end_balance(db, 2025) == Decimal("3499.50")
    assert await FinanceService.year_end_balance(db, 2024) == Decimal("-999.00")


@pytest.mark.asyncio
async def test_manual_income_crud(db, admin_id):
    income = await FinanceService.create_income(
        db, admin_id, Decimal("500"), date(2025, 5, 1), IncomeCategory.OTHER, "Deposit kept"
    )
    assert income.source == IncomeSource.MANUAL

    updated = await FinanceService.update_income(db, income.id, admin_id, amount=Decimal("550"))
    assert updated.amount == Decimal("550")

    await FinanceService.delete_income(db, income.id, admin_id)
    with pytest.raises(IncomeNotFound):
        await FinanceService.get_income(db, income.id)


@pytest.mark.asyncio
async def test_negative_manual_income_rejected(db, admin_id):
    with pytest.raises(InvalidQuantity):
        await FinanceService.create_income(db, admin_id, Decimal("-1"), date(2025, 5, 1))


@pytest.mark.asyncio
async def test_derived_income_is_read_only(db, seeded, admin_id):
    payment = await _paid_bill(db, seeded, admin_id, date(2025, 4, 2))
    derived = (await db.execute(select(Income).where(Income.payment_id == payment.id))).scalars().first()
    with pytest.raises(Conflict):
        await FinanceService.update_income(db, derived.id, admin_id, amount=Decimal("1"))
    with pytest.raises(Conflict):
        await FinanceService.delete_income(db, derived.id, admin_id)


@pytest.mark.asyncio
async def test_list_incomes_paginates_and_filters(db, admin_id):
    for day in range(1, 13):
        await FinanceService.create_income(db, admin_id, Decimal(day), date(2025, 8, day))
    await FinanceService.create_income(db, admin_id, Decimal("7"), date(2025, 9, 1), IncomeCategory.ROOM)

    page, total = await FinanceService.list_incomes(db, page=1, page_size=10, year=2025, month=8)
    assert total == 12
    assert len(page) == 10
    assert page[0].income_date == date(2025, 8, 12)

    page, total = await FinanceService.list_incomes(db, page=2, page_size=10, year=2025, month=8)
    assert len(page) == 2

    rooms, total = await FinanceService.list_incomes(db, category=IncomeCategory.ROOM)
    assert total == 1 and rooms[0].income_date == date(2025, 9, 1)


@pytest.mark.asyncio
async def test_expense_crud_and_filters(db, admin_id):
    other_admin = uuid4()
    water = await FinanceService.create_expense(db, admin_id, "Water bill", Decimal("800"), date(2025, 3, 3))
    await FinanceService.create_expense(db, admin_id, "Repairs", Decimal("120"), date(2025, 3, 9))
    await FinanceService.create_expense(db, admin_id, "Repairs", Decimal("60"), date(2025, 4, 9))

    assert len(await FinanceService.get_expenses(db, year=2025, month=3)) == 2
    assert len(await FinanceService.get_expenses(db, expense_type="Repairs")) == 2

    updated = await FinanceService.update_expense(db, water.id, other_admin, amount=Decimal("820"))
    assert updated.amount == Decimal("820")
    assert updated.admin_id == other_admin

    await FinanceService.delete_expense(db, water.id, admin_id)
    with pytest.raises(ExpenseNotFound):
        await FinanceService.get_expense(db, water.id)


@pytest.mark.asyncio
async def test_negative_expense_rejected(db, admin_id):
    with pytest.raises(InvalidQuantity):
        await FinanceService.create_expense(db, admin_id, "Repairs", Decimal("-10"), date(2025, 3, 3))


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [Decimal("10.005"), Decimal("10000000000")])
async def test_unstorable_expense_rejected(db, admin_id, amount):
    with pytest.raises(InvalidQuantity):
        await FinanceService.create_expense(db, admin_id, "Repairs", amount, date(2025, 3, 3))
    assert await FinanceService.expense_total(db, 2025) == Decimal("0")


@pytest.mark.asyncio
async def test_chart_for_year(db, seeded, admin_id):
    await _paid_bill(db, seeded, admin_id, date(2025, 2, 14))
    await FinanceService.create_expense(db, admin_id, "Repairs", Decimal("300"), date(2025, 2, 20))

    buckets = await FinanceService.chart(db, year=2025)
    assert len(buckets) == 12
    assert buckets[1].income == Decimal("3960.00")
    assert buckets[1].expense == Decimal("300.00")
    assert all(b.income == 0 and b.expense == 0 for i, b in enumerate(buckets) if i != 1)


@pytest.mark.asyncio
async def test_chart_for_empty_year(db):
    buckets = await FinanceService.chart(db, year=1999)
    assert len(buckets) == 12
    assert all(b.income == 0 and b.expense == 0 for b in buckets)


@pytest.mark.asyncio
async def test_summary(db, seeded, admin_id):
    await _paid_bill(db, seeded, admin_id, date(2025, 5, 3))
    await _paid_bill(db, seeded, admin_id, date(2025, 6, 3))
    await FinanceService.create_expense(db, admin_id, "Cleaning", Decimal("100"), date(2025, 6, 10))

    summary = await FinanceService.summary(db, 2025, 6)
    assert summary.monthly_income == Decimal("3960.00")
    assert summary.monthly_expense == Decimal("100.00")
    assert summary.year_end_balance == Decimal("7820.00")


@pytest.mark.asyncio
async def test_aggregate_timeout_surfaces(db, monkeypatch):
    async def slow_total(*args, **kwargs):
        await asyncio.sleep(1)
        return Decimal("0")

    monkeypatch.setattr(FinanceService, "income_total", slow_total)
    with pytest.raises(Timeout):
        await FinanceService.year_end_balance(db, 2025, timeout=0.01)
