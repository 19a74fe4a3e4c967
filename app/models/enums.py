"""Centralized Enum Definitions"""

import enum
from typing import Union


# Stay registry (external collaborator)
class StayStatus(str, enum.Enum):
    """Occupancy status of a stay"""
    CHECKED_IN = "checked_in"
    ACTIVE = "active"
    CHECKED_OUT = "checked_out"


# Billing
class PaymentStatus(str, enum.Enum):
    """Payment lifecycle. PAID is terminal."""
    UNPAID = "unpaid"
    PROCESSING = "processing"
    PAID = "paid"

    @classmethod
    def parse(cls, value: Union[str, int, "PaymentStatus"]) -> "PaymentStatus":
        """
        Convert a boundary value into a status.

        Accepts the enum itself, its value or name in any case, and the legacy
        integer codes 0 (unpaid), 1 (processing) and 2 (paid), as ints or strings.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Unknown payment status: {value!r}")
        if isinstance(value, int):
            value = str(value)
        text = str(value).strip().lower()
        if text in _LEGACY_STATUS_CODES:
            return _LEGACY_STATUS_CODES[text]
        for member in cls:
            if text in (member.value, member.name.lower()):
                return member
        raise ValueError(f"Unknown payment status: {value!r}")

    @property
    def legacy_code(self) -> int:
        return _LEGACY_CODES_BY_STATUS[self]


_LEGACY_STATUS_CODES = {
    "0": PaymentStatus.UNPAID,
    "1": PaymentStatus.PROCESSING,
    "2": PaymentStatus.PAID,
}
_LEGACY_CODES_BY_STATUS = {status: int(code) for code, status in _LEGACY_STATUS_CODES.items()}


class RateCategory(str, enum.Enum):
    """Metered utility categories priced by the rate catalog"""
    WATER = "water"
    ELECTRICITY = "electricity"


# Ledger
class IncomeCategory(str, enum.Enum):
    """Income components"""
    ROOM = "room"
    OTHER = "other"


class IncomeSource(str, enum.Enum):
    """Where an income row came from"""
    PAYMENT = "payment"
    MANUAL = "manual"
