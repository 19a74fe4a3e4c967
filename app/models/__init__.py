"""Models Package - Export all models for easy imports"""

from app.models.base import BaseModel
from app.models.enums import (
    IncomeCategory,
    IncomeSource,
    PaymentStatus,
    RateCategory,
    StayStatus,
)
from app.models.stay import Occupant, Room, Stay, BillType
from app.models.payment import Payment, PaymentSlip
from app.models.finance import Income, Expense


__all__ = [
    # Base classes
    "BaseModel",

    # Enums
    "IncomeCategory",
    "IncomeSource",
    "PaymentStatus",
    "RateCategory",
    "StayStatus",

    # Stay registry
    "Occupant",
    "Room",
    "Stay",
    "BillType",

    # Billing
    "Payment",
    "PaymentSlip",

    # Ledger
    "Income",
    "Expense",
]
