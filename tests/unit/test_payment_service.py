"""Unit tests for PaymentService with the stay registry mocked out."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidQuantity, StayNotFound
from app.models.enums import RateCategory, StayStatus
from app.services.bill_calculator import MeterReadings, RateCatalog
from app.services.payment_service import PaymentService
from app.services.stay_service import StaySnapshot


def _snapshot(room_price="3500") -> StaySnapshot:
    return StaySnapshot(
        stay_id=uuid4(),
        user_id=uuid4(),
        user_name="Somchai",
        room_id=uuid4(),
        room_num="A101",
        room_price=Decimal(room_price),
        stay_status=StayStatus.ACTIVE,
    )


@pytest.mark.asyncio
async def test_preview_prices_with_current_rates():
    db = AsyncMock(spec=AsyncSession)
    rates = RateCatalog(prices={RateCategory.WATER: Decimal("18"), RateCategory.ELECTRICITY: Decimal("7")})

    with patch("app.services.payment_service.StayService.get_stay", new_callable=AsyncMock) as mock_stay:
        mock_stay.return_value = _snapshot()
        with patch("app.services.payment_service.StayService.load_rate_catalog", new_callable=AsyncMock) as mock_rates:
            mock_rates.return_value = rates

            breakdown = await PaymentService.preview(db, uuid4(), MeterReadings.of(10, 40))

    assert breakdown.total == Decimal("3960.00")
    assert not db.commit.called
    assert not db.add.called


@pytest.mark.asyncio
async def test_preview_rejects_negative_before_touching_store():
    db = AsyncMock(spec=AsyncSession)
    with patch("app.services.payment_service.StayService.get_stay", new_callable=AsyncMock) as mock_stay:
        with pytest.raises(InvalidQuantity):
            await PaymentService.preview(db, uuid4(), MeterReadings.of(0, 0), other_charge=-1)
        assert not mock_stay.called


@pytest.mark.asyncio
async def test_create_for_unknown_stay_writes_nothing():
    db = AsyncMock(spec=AsyncSession)
    stay_id = uuid4()
    with patch("app.services.payment_service.StayService.get_stay", new_callable=AsyncMock) as mock_stay:
        mock_stay.side_effect = StayNotFound(stay_id)
        with pytest.raises(StayNotFound):
            await PaymentService.create_payment(db, stay_id, uuid4(), MeterReadings.of(1, 1), issue_date=date(2025, 1, 1))
    assert not db.add.called
    assert not db.commit.called
