"""Unit tests for income splitting and the monthly chart."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from app.models.enums import IncomeCategory, PaymentStatus
from app.models.payment import Payment
from app.services.finance_service import monthly_chart, split_payment_income


def _payment(total="3960", other="0", description=None, on=date(2025, 5, 10)) -> Payment:
    return Payment(
        total=Decimal(total),
        other_charge=Decimal(other),
        other_description=description,
        payment_date=on,
        status=PaymentStatus.PAID,
    )


def test_split_room_only():
    drafts = split_payment_income(_payment())
    assert len(drafts) == 1
    assert drafts[0].category == IncomeCategory.ROOM
    assert drafts[0].amount == Decimal("3960.00")
    assert drafts[0].income_date == date(2025, 5, 10)


def test_split_room_and_other():
    drafts = split_payment_income(_payment(total="4160", other="200", description="Key replacement"))
    by_category = {d.category: d for d in drafts}
    assert by_category[IncomeCategory.ROOM].amount == Decimal("3960.00")
    assert by_category[IncomeCategory.OTHER].amount == Decimal("200.00")
    assert by_category[IncomeCategory.OTHER].description == "Key replacement"


def test_split_skips_undescribed_other():
    drafts = split_payment_income(_payment(total="4160", other="200", description="   "))
    assert [d.category for d in drafts] == [IncomeCategory.ROOM]


def test_split_skips_non_positive_room():
    drafts = split_payment_income(_payment(total="200", other="200", description="Deposit"))
    assert [d.category for d in drafts] == [IncomeCategory.OTHER]


def _entry(amount, on):
    return SimpleNamespace(amount=Decimal(amount), income_date=on, expense_date=on)


def test_chart_empty_year_has_twelve_zero_buckets():
    buckets = monthly_chart([], [], year=2024)
    assert len(buckets) == 12
    assert [b.month for b in buckets] == list(range(1, 13))
    assert all(b.income == 0 and b.expense == 0 for b in buckets)
    assert buckets[0].name == "Jan"


def test_chart_filters_by_year():
    incomes = [_entry("100", date(2025, 1, 5)), _entry("50", date(2024, 1, 5))]
    expenses = [_entry("30", date(2025, 1, 20)), _entry("10", date(2025, 12, 31))]
    buckets = monthly_chart(incomes, expenses, year=2025)
    assert buckets[0].income == Decimal("100.00")
    assert buckets[0].expense == Decimal("30.00")
    assert buckets[11].expense == Decimal("10.00")


def test_chart_without_year_folds_all_years():
    incomes = [_entry("100", date(2025, 3, 1)), _entry("50", date(2023, 3, 9))]
    buckets = monthly_chart(incomes, [])
    assert buckets[2].income == Decimal("150.00")
