"""Ledger Models: income and expense entries"""

from sqlalchemy import Column, Date, Enum, ForeignKey, Numeric, String, Text, UniqueConstraint, Uuid

from app.models.base import BaseModel, enum_values
from app.models.enums import IncomeCategory, IncomeSource


class Income(BaseModel):
    """
    Settled revenue. Rows derived from a payment are keyed by
    (payment_id, category) so a payment contributes each component once.
    """
    __tablename__ = "incomes"
    __table_args__ = (
        UniqueConstraint("payment_id", "category", name="uq_incomes_payment_category"),
    )

    amount = Column(Numeric(12, 2), nullable=False)
    income_date = Column(Date, nullable=False, index=True)
    category = Column(
        Enum(IncomeCategory, name="income_category", values_callable=enum_values),
        nullable=False,
        index=True,
    )
    description = Column(Text, nullable=True)
    source = Column(
        Enum(IncomeSource, name="income_source", values_callable=enum_values),
        default=IncomeSource.MANUAL,
        nullable=False,
    )
    payment_id = Column(Uuid(as_uuid=True), ForeignKey("payments.id", ondelete="CASCADE"), nullable=True, index=True)

    @property
    def is_derived(self) -> bool:
        return self.source == IncomeSource.PAYMENT

    def __repr__(self) -> str:
        return f"<Income {self.category} {self.amount}>"


class Expense(BaseModel):
    """Manually recorded expense."""
    __tablename__ = "expenses"

    expense_type = Column(String(100), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    expense_date = Column(Date, nullable=False, index=True)
    admin_id = Column(Uuid(as_uuid=True), nullable=False)
    description = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Expense {self.expense_type} {self.amount}>"
