"""Rate catalog and bill calculation.

Everything here is pure: no session, no I/O. The ledger calls it on commit and
the preview endpoint calls it to show a bill before it is issued.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Union

from app.core.errors import InvalidQuantity, RateNotFound
from app.core.logging import get_logger
from app.models.enums import RateCategory

logger = get_logger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")
# Largest value a Numeric(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Optional[Number], field_name: str = "value") -> Decimal:
    """Coerce a boundary number into Decimal without going through binary float."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        # str() keeps 0.1 as 0.1 instead of 0.1000000000000000055...
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidQuantity(field_name, value) from None


def money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class MeterReadings:
    """Metered usage for one billing period."""
    water_units: Decimal = ZERO
    ele_units: Decimal = ZERO

    @classmethod
    def of(cls, water_units: Optional[Number] = None, ele_units: Optional[Number] = None) -> "MeterReadings":
        return cls(
            water_units=to_decimal(water_units, "water_units"),
            ele_units=to_decimal(ele_units, "ele_units"),
        )


@dataclass(frozen=True)
class RateCatalog:
    """Immutable unit prices by rate category."""
    prices: Mapping[RateCategory, Decimal] = field(default_factory=dict)
    strict: bool = False

    def __post_init__(self):
        object.__setattr__(self, "prices", MappingProxyType(dict(self.prices)))

    @classmethod
    def from_bill_types(
        cls,
        bill_types: Iterable,
        keywords: Mapping[RateCategory, List[str]],
        strict: bool = False,
    ) -> "RateCatalog":
        """
        Build a catalog from ``BillType``-like rows (``bill_type``, ``unit_price``).

        A row prices a category when its name contains one of the category's
        keywords, case-insensitively. The first matching row wins.
        """
        prices: Dict[RateCategory, Decimal] = {}
        for row in bill_types:
            name = (row.bill_type or "").lower()
            for category, words in keywords.items():
                if category in prices:
                    continue
                if any(word in name for word in words):
                    prices[category] = to_decimal(row.unit_price, f"{category.value}_rate")
        return cls(prices=prices, strict=strict)

    def price_for(self, category: RateCategory) -> Decimal:
        price = self.prices.get(category)
        if price is not None:
            return price
        if self.strict:
            raise RateNotFound(category.value)
        # TODO: drop the zero fallback once every deployment has water and electricity bill types
        logger.warning(
            "No unit price for %s, billing it at 0",
            category.value,
            extra={"rate_category": category.value},
        )
        return ZERO

    @property
    def water_price(self) -> Decimal:
        return self.price_for(RateCategory.WATER)

    @property
    def electricity_price(self) -> Decimal:
        return self.price_for(RateCategory.ELECTRICITY)


@dataclass(frozen=True)
class BillBreakdown:
    room: Decimal
    water: Decimal
    electricity: Decimal
    other: Decimal
    water_unit_price: Decimal
    ele_unit_price: Decimal
    # Exact sum of the unrounded components, rounded once
    total: Decimal

    def as_dict(self) -> Dict[str, Decimal]:
        return {
            "room": self.room,
            "water": self.water,
            "electricity": self.electricity,
            "other": self.other,
            "total": self.total,
        }


def storable_amount(value: Number, field_name: str) -> Decimal:
    """
    Check that ``value`` is a non-negative amount a ledger column can hold
    exactly: at most two decimal places and no larger than ``MAX_AMOUNT``.

    Raises:
        InvalidQuantity: negative, not a number, too precise or too large
    """
    amount = to_decimal(value, field_name)
    if not amount.is_finite() or amount < 0:
        raise InvalidQuantity(field_name, value)
    if amount > MAX_AMOUNT:
        raise InvalidQuantity(field_name, value, f"must not exceed {MAX_AMOUNT}")
    if amount != amount.quantize(CENT):
        raise InvalidQuantity(field_name, value, "must have at most 2 decimal places")
    return amount


def validate_quantities(readings: MeterReadings, other_charge: Number = ZERO) -> None:
    """Raises InvalidQuantity for a negative, over-precise or oversized meter delta or other charge."""
    storable_amount(readings.water_units, "water_units")
    storable_amount(readings.ele_units, "ele_units")
    storable_amount(other_charge, "other_charge")


def price_bill(
    room_price: Number,
    readings: MeterReadings,
    water_unit_price: Number,
    ele_unit_price: Number,
    other_charge: Number = ZERO,
) -> BillBreakdown:
    """
    Price a bill from explicit unit prices (used for corrections on issued bills).

    Every input is exact at cent scale, so the stored quantities and prices
    always reproduce the stored total.
    """
    room = storable_amount(room_price, "room_price")
    water_units = storable_amount(readings.water_units, "water_units")
    ele_units = storable_amount(readings.ele_units, "ele_units")
    other = storable_amount(other_charge, "other_charge")
    water_price = storable_amount(water_unit_price, "water_unit_price")
    ele_price = storable_amount(ele_unit_price, "ele_unit_price")

    water = water_units * water_price
    electricity = ele_units * ele_price
    breakdown = BillBreakdown(
        room=money(room),
        water=money(water),
        electricity=money(electricity),
        other=money(other),
        water_unit_price=water_price,
        ele_unit_price=ele_price,
        total=money(room + water + electricity + other),
    )
    if breakdown.total > MAX_AMOUNT:
        raise InvalidQuantity("total", breakdown.total, f"must not exceed {MAX_AMOUNT}")
    return breakdown


def calculate_bill(
    room_price: Number,
    readings: MeterReadings,
    rates: RateCatalog,
    other_charge: Number = ZERO,
) -> BillBreakdown:
    """
    Compute ``room + water_units*water_rate + ele_units*ele_rate + other``.

    Raises:
        InvalidQuantity: a meter delta, the other charge or the room price is negative
        RateNotFound: a rate is missing and the catalog is strict
    """
    # Inputs are validated before any rate is looked up
    validate_quantities(readings, other_charge)
    return price_bill(
        room_price,
        readings,
        rates.water_price,
        rates.electricity_price,
        other_charge,
    )
