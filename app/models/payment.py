"""Billing Models: payments and proof-of-payment slips"""

from sqlalchemy import (
    Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text,
    UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, enum_values
from app.models.enums import PaymentStatus
from app.utils.time import get_utc_now


class Payment(BaseModel):
    """
    One bill for one stay covering one billing period (``YYYY-MM``).

    Unit prices and the room price are snapshotted at creation so later rate
    changes never alter an issued bill.
    """
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("stay_id", "billing_period", name="uq_payments_stay_period"),
    )

    stay_id = Column(Uuid(as_uuid=True), ForeignKey("stays.id", ondelete="RESTRICT"), nullable=False, index=True)
    admin_id = Column(Uuid(as_uuid=True), nullable=False)
    billing_period = Column(String(7), nullable=False, index=True)

    # Metered usage and captured prices
    water_units = Column(Numeric(12, 2), nullable=False, default=0)
    ele_units = Column(Numeric(12, 2), nullable=False, default=0)
    water_unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    ele_unit_price = Column(Numeric(12, 2), nullable=False, default=0)
    room_price = Column(Numeric(12, 2), nullable=False)

    other_charge = Column(Numeric(12, 2), nullable=False, default=0)
    other_description = Column(Text, nullable=True)

    total = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False, index=True)
    status = Column(
        Enum(PaymentStatus, name="payment_status", values_callable=enum_values),
        default=PaymentStatus.UNPAID,
        nullable=False,
        index=True,
    )
    paid_at = Column(DateTime, nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    stay = relationship("Stay", lazy="joined")

    @property
    def is_settled(self) -> bool:
        return self.status == PaymentStatus.PAID

    def __repr__(self) -> str:
        return f"<Payment {self.total} - {self.status}>"


class PaymentSlip(BaseModel):
    """Reference to an uploaded proof-of-payment artifact."""
    __tablename__ = "payment_slips"

    payment_id = Column(Uuid(as_uuid=True), ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True)
    stay_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False)
    slip_url = Column(String(1000), nullable=False)
    uploaded_at = Column(DateTime, default=get_utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<PaymentSlip {self.slip_url}>"
