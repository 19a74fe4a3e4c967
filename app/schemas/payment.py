from typing import Optional, Any
from pydantic import BaseModel, Field, ConfigDict, field_validator
from uuid import UUID
from datetime import datetime, date
from decimal import Decimal

from app.models.enums import PaymentStatus
from app.models.payment import Payment
from app.utils.time import get_utc_today


class MeterInput(BaseModel):
    """Usage for the period. Negative values are rejected by the ledger."""
    water_units: Decimal = Decimal("0")
    ele_units: Decimal = Decimal("0")
    other_charge: Decimal = Decimal("0")
    other_description: Optional[str] = Field(None, max_length=500)


class PaymentPreviewRequest(MeterInput):
    stay_id: UUID


class PaymentCreate(MeterInput):
    stay_id: UUID
    payment_date: date = Field(default_factory=get_utc_today)


class PaymentUpdate(BaseModel):
    """Corrections to an unsettled bill; omitted fields stay as they are."""
    water_units: Optional[Decimal] = None
    ele_units: Optional[Decimal] = None
    other_charge: Optional[Decimal] = None
    other_description: Optional[str] = Field(None, max_length=500)
    payment_date: Optional[date] = None


class PaymentStatusUpdate(BaseModel):
    """Accepts "paid", "PAID" or the legacy codes 0/1/2."""
    status: PaymentStatus

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v: Any) -> PaymentStatus:
        return PaymentStatus.parse(v)


class BillBreakdownResponse(BaseModel):
    room: Decimal
    water: Decimal
    electricity: Decimal
    other: Decimal
    total: Decimal
    water_unit_price: Decimal
    ele_unit_price: Decimal

    model_config = ConfigDict(from_attributes=True)


class PaymentResponse(BaseModel):
    id: UUID
    stay_id: UUID
    admin_id: UUID
    user_name: str
    room_num: str
    billing_period: str
    water_units: Decimal
    ele_units: Decimal
    water_unit_price: Decimal
    ele_unit_price: Decimal
    room_price: Decimal
    other_charge: Decimal
    other_description: Optional[str] = None
    total: Decimal
    payment_date: date
    status: PaymentStatus
    status_code: int
    paid_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentResponse":
        stay = payment.stay
        return cls(
            id=payment.id,
            stay_id=payment.stay_id,
            admin_id=payment.admin_id,
            user_name=stay.occupant.user_name if stay and stay.occupant else "Unknown User",
            room_num=stay.room.room_num if stay and stay.room else "Unknown Room",
            billing_period=payment.billing_period,
            water_units=payment.water_units,
            ele_units=payment.ele_units,
            water_unit_price=payment.water_unit_price,
            ele_unit_price=payment.ele_unit_price,
            room_price=payment.room_price,
            other_charge=payment.other_charge,
            other_description=payment.other_description,
            total=payment.total,
            payment_date=payment.payment_date,
            status=payment.status,
            status_code=payment.status.legacy_code,
            paid_at=payment.paid_at,
            created_at=payment.created_at,
        )
