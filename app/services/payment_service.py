"""Payment Ledger - bill issuing, corrections and the payment status machine"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, FrozenSet, List, Optional
from uuid import UUID

from sqlalchemy import delete, inspect, select
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.util import identity_key

from app.config import settings
from app.core.errors import Conflict, EngineError, IllegalTransition, PaymentNotFound, StoreUnavailable
from app.core.logging import get_logger
from app.core.resilience import KeyedLock, store_errors
from app.models.enums import PaymentStatus
from app.models.payment import Payment, PaymentSlip
from app.services.bill_calculator import (
    ZERO,
    BillBreakdown,
    MeterReadings,
    calculate_bill,
    price_bill,
    to_decimal,
    validate_quantities,
)
from app.services.finance_service import FinanceService
from app.services.stay_service import StayService
from app.services.store import commit, fetch
from app.utils.time import get_utc_now

logger = get_logger(__name__)

# Unpaid -> Processing -> Paid, or Unpaid -> Paid directly. Paid is terminal.
ALLOWED_TRANSITIONS: Dict[PaymentStatus, FrozenSet[PaymentStatus]] = {
    PaymentStatus.UNPAID: frozenset({PaymentStatus.PROCESSING, PaymentStatus.PAID}),
    PaymentStatus.PROCESSING: frozenset({PaymentStatus.PAID}),
    PaymentStatus.PAID: frozenset(),
}

# Serializes writers of one payment and creators of one (stay, period)
payment_locks = KeyedLock()


def billing_period(issue_date: date) -> str:
    """Calendar month a bill covers, as ``YYYY-MM``."""
    return f"{issue_date.year:04d}-{issue_date.month:02d}"


def check_transition(current: PaymentStatus, requested: PaymentStatus) -> bool:
    """
    Validate a status move. Returns False when ``requested`` is already the
    current status (nothing to do).

    Raises:
        IllegalTransition: ``requested`` is not reachable from ``current``
    """
    if requested == current:
        return False
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise IllegalTransition(current, requested)
    return True


def _other_description(other_charge: Decimal, description: Optional[str]) -> Optional[str]:
    text = (description or "").strip()
    if other_charge > 0 and not text:
        return settings.DEFAULT_OTHER_DESCRIPTION
    return text or None


@dataclass(frozen=True)
class PaymentCorrection:
    """Fields an admin may correct on a bill that is not paid yet. None = unchanged."""
    water_units: Optional[Decimal] = None
    ele_units: Optional[Decimal] = None
    other_charge: Optional[Decimal] = None
    other_description: Optional[str] = None
    payment_date: Optional[date] = None


class PaymentService:
    """Service layer for the payment ledger"""

    # --- Queries -----------------------------------------------------------

    @staticmethod
    async def find_payment(db: AsyncSession, payment_id: UUID) -> Optional[Payment]:
        result = await fetch(
            db,
            select(Payment)
            .where(Payment.id == payment_id)
            .execution_options(populate_existing=True),
            "load payment",
        )
        return result.unique().scalar_one_or_none()

    @staticmethod
    async def get_payment(db: AsyncSession, payment_id: UUID) -> Payment:
        payment = await PaymentService.find_payment(db, payment_id)
        if payment is None:
            raise PaymentNotFound(payment_id)
        return payment

    @staticmethod
    async def list_by_period(
        db: AsyncSession,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> List[Payment]:
        """Payments filtered by billing month and/or year; no filter lists all."""
        stmt = select(Payment)
        if year is not None and month is not None:
            stmt = stmt.where(Payment.billing_period == f"{year:04d}-{month:02d}")
        elif year is not None:
            stmt = stmt.where(Payment.billing_period.like(f"{year:04d}-%"))
        elif month is not None:
            stmt = stmt.where(Payment.billing_period.like(f"%-{month:02d}"))
        result = await fetch(
            db,
            stmt.order_by(Payment.payment_date.desc(), Payment.created_at.desc()),
            "list payments",
        )
        return list(result.unique().scalars().all())

    @staticmethod
    async def list_by_stay(db: AsyncSession, stay_id: UUID) -> List[Payment]:
        result = await fetch(
            db,
            select(Payment)
            .where(Payment.stay_id == stay_id)
            .order_by(Payment.payment_date.desc()),
            "list stay payments",
        )
        return list(result.unique().scalars().all())

    @staticmethod
    async def preview(
        db: AsyncSession,
        stay_id: UUID,
        readings: MeterReadings,
        other_charge=ZERO,
    ) -> BillBreakdown:
        """Price a bill against current rates without issuing it."""
        other = to_decimal(other_charge, "other_charge")
        validate_quantities(readings, other)
        stay = await StayService.get_stay(db, stay_id)
        rates = await StayService.load_rate_catalog(db)
        return calculate_bill(stay.room_price, readings, rates, other)

    # --- Commands ----------------------------------------------------------

    @staticmethod
    async def create_payment(
        db: AsyncSession,
        stay_id: UUID,
        actor_id: UUID,
        readings: MeterReadings,
        issue_date: date,
        other_charge=ZERO,
        other_description: Optional[str] = None,
    ) -> Payment:
        """
        Issue an unpaid bill for a stay's billing period.

        Raises:
            InvalidQuantity: a meter reading or other charge is negative or not storable at cent scale
            StayNotFound: unknown stay
            Conflict: the stay already has a bill for this period
        """
        other = to_decimal(other_charge, "other_charge")
        validate_quantities(readings, other)

        period = billing_period(issue_date)
        async with payment_locks.hold(("period", stay_id, period)):
            stay = await StayService.get_stay(db, stay_id)
            rates = await StayService.load_rate_catalog(db)
            breakdown = calculate_bill(stay.room_price, readings, rates, other)

            existing = await fetch(
                db,
                select(Payment.id).where(
                    Payment.stay_id == stay_id,
                    Payment.billing_period == period,
                ),
                "check billing period",
            )
            if existing.first() is not None:
                logger.info(
                    "Duplicate bill rejected",
                    extra={"stay_id": str(stay_id), "billing_period": period},
                )
                raise Conflict(f"Stay {stay_id} already has a bill for {period}")

            payment = Payment(
                stay_id=stay_id,
                admin_id=actor_id,
                billing_period=period,
                water_units=readings.water_units,
                ele_units=readings.ele_units,
                water_unit_price=breakdown.water_unit_price,
                ele_unit_price=breakdown.ele_unit_price,
                room_price=breakdown.room,
                other_charge=breakdown.other,
                other_description=_other_description(breakdown.other, other_description),
                total=breakdown.total,
                payment_date=issue_date,
                status=PaymentStatus.UNPAID,
            )
            db.add(payment)
            await commit(db, "create payment", f"Stay {stay_id} already has a bill for {period}")

        logger.info(
            "Payment created",
            extra={
                "payment_id": str(payment.id),
                "stay_id": str(stay_id),
                "billing_period": period,
                "total": str(payment.total),
                "admin_id": str(actor_id),
            },
        )
        return await PaymentService.get_payment(db, payment.id)

    @staticmethod
    async def _load_for_update(db: AsyncSession, payment_id: UUID) -> Payment:
        cached = db.identity_map.get(identity_key(Payment, payment_id))
        if cached is not None and inspect(cached).expired:
            # A versioned locked load needs a loaded instance to compare against
            db.expunge(cached)
        result = await fetch(
            db,
            select(Payment)
            .where(Payment.id == payment_id)
            .with_for_update(of=Payment)
            .execution_options(populate_existing=True),
            "lock payment",
        )
        payment = result.unique().scalar_one_or_none()
        if payment is None:
            raise PaymentNotFound(payment_id)
        return payment

    @staticmethod
    async def update_status(
        db: AsyncSession,
        payment_id: UUID,
        new_status: PaymentStatus,
        actor_id: UUID,
    ) -> Payment:
        """
        Move a payment along the status machine.

        Entering PAID derives the payment's income in the same transaction, so
        income is recorded exactly once and never without the status change.
        Re-sending the current status changes nothing.

        Raises:
            PaymentNotFound: unknown payment
            IllegalTransition: ``new_status`` is not reachable
        """
        async with payment_locks.hold(("payment", payment_id)):
            payment = None
            try:
                payment = await PaymentService._load_for_update(db, payment_id)
                previous = payment.status
                if not check_transition(previous, new_status):
                    # Release the row lock; nothing to write
                    await _release(db, payment)
                    return payment

                payment.status = new_status
                if new_status == PaymentStatus.PAID:
                    payment.paid_at = get_utc_now()
                    await FinanceService.derive_income(db, payment, auto_commit=False)
                await commit(db, "update payment status", "Payment status changed concurrently")
            except EngineError:
                await _release(db, payment)
                raise

        logger.info(
            "Payment status changed",
            extra={
                "payment_id": str(payment_id),
                "from_status": previous.value,
                "to_status": new_status.value,
                "admin_id": str(actor_id),
            },
        )
        return await PaymentService.get_payment(db, payment_id)

    @staticmethod
    async def update_payment(
        db: AsyncSession,
        payment_id: UUID,
        correction: PaymentCorrection,
        actor_id: UUID,
    ) -> Payment:
        """
        Correct an unpaid or processing bill and recompute its total with the
        unit prices captured when it was issued.

        Raises:
            PaymentNotFound: unknown payment
            InvalidQuantity: a corrected value is negative or not storable at cent scale
            Conflict: the bill is paid, or the new date moves it onto a period
                that already has a bill
        """
        async with payment_locks.hold(("payment", payment_id)):
            payment = None
            try:
                payment = await PaymentService._load_for_update(db, payment_id)
                if payment.is_settled:
                    raise Conflict("A paid bill cannot be edited")

                readings = MeterReadings(
                    water_units=_pick(correction.water_units, payment.water_units, "water_units"),
                    ele_units=_pick(correction.ele_units, payment.ele_units, "ele_units"),
                )
                other = _pick(correction.other_charge, payment.other_charge, "other_charge")
                breakdown = price_bill(
                    payment.room_price,
                    readings,
                    payment.water_unit_price,
                    payment.ele_unit_price,
                    other,
                )
                issue_date = correction.payment_date or payment.payment_date
                period = billing_period(issue_date)
                description = (
                    correction.other_description
                    if correction.other_description is not None
                    else payment.other_description
                )

                async with payment_locks.hold(("period", payment.stay_id, period)):
                    if period != payment.billing_period:
                        clash = await fetch(
                            db,
                            select(Payment.id).where(
                                Payment.stay_id == payment.stay_id,
                                Payment.billing_period == period,
                                Payment.id != payment.id,
                            ),
                            "check billing period",
                            in_transaction=True,
                        )
                        if clash.first() is not None:
                            raise Conflict(f"Stay {payment.stay_id} already has a bill for {period}")

                    payment.water_units = readings.water_units
                    payment.ele_units = readings.ele_units
                    payment.other_charge = breakdown.other
                    payment.other_description = _other_description(breakdown.other, description)
                    payment.total = breakdown.total
                    payment.payment_date = issue_date
                    payment.billing_period = period
                    await commit(
                        db,
                        "correct payment",
                        f"Stay {payment.stay_id} already has a bill for {period}",
                    )
            except EngineError:
                await _release(db, payment)
                raise

        logger.info(
            "Payment corrected",
            extra={
                "payment_id": str(payment_id),
                "total": str(breakdown.total),
                "admin_id": str(actor_id),
            },
        )
        return await PaymentService.get_payment(db, payment_id)

    @staticmethod
    async def delete_payment(db: AsyncSession, payment_id: UUID, actor_id: UUID) -> None:
        """
        Remove an unsettled bill together with its slips and any income derived from it.

        Raises:
            PaymentNotFound: unknown payment
            Conflict: the bill is paid
        """
        async with payment_locks.hold(("payment", payment_id)):
            payment = None
            try:
                payment = await PaymentService._load_for_update(db, payment_id)
                if payment.is_settled:
                    logger.warning(
                        "Refused to delete paid payment",
                        extra={"payment_id": str(payment_id), "admin_id": str(actor_id)},
                    )
                    raise Conflict("A paid bill is a financial record and cannot be deleted")

                async with store_errors("delete payment"):
                    await db.execute(delete(PaymentSlip).where(PaymentSlip.payment_id == payment_id))
                    await FinanceService.remove_derived_income(db, payment_id)
                    await db.delete(payment)
                await commit(db, "delete payment", "Payment changed while being deleted")
            except EngineError:
                await _release(db, payment)
                raise

        logger.info(
            "Payment deleted",
            extra={"payment_id": str(payment_id), "admin_id": str(actor_id)},
        )


def _pick(new_value, current_value, field_name: str) -> Decimal:
    return to_decimal(new_value if new_value is not None else current_value, field_name)


async def _release(db: AsyncSession, payment: Optional[Payment]) -> None:
    """
    Roll back the command and reload ``payment`` from its committed row, so
    the session never holds an expired payment after a failed command.
    """
    await db.rollback()
    if payment is None or payment not in db:
        return
    try:
        async with store_errors("reload payment"):
            await db.refresh(payment)
    except (InvalidRequestError, StoreUnavailable) as e:
        # Row is gone or unreadable; the next load starts from a fresh instance
        logger.warning(
            f"Could not reload payment after rollback: {e}",
            extra={"payment_key": str(inspect(payment).identity)},
        )
        db.expunge(payment)
