"""Stay Registry - read-only access to stays and bill types"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.errors import StayNotFound
from app.models.enums import RateCategory, StayStatus
from app.models.stay import BillType, Stay
from app.services.bill_calculator import RateCatalog
from app.services.store import fetch


@dataclass(frozen=True)
class StaySnapshot:
    """What billing needs to know about a stay."""
    stay_id: UUID
    user_id: UUID
    user_name: str
    room_id: UUID
    room_num: str
    room_price: Decimal
    stay_status: StayStatus

    @classmethod
    def from_stay(cls, stay: Stay) -> "StaySnapshot":
        return cls(
            stay_id=stay.id,
            user_id=stay.user_id,
            user_name=stay.occupant.user_name if stay.occupant else "Unknown User",
            room_id=stay.room_id,
            room_num=stay.room.room_num if stay.room else "Unknown Room",
            room_price=stay.room_price,
            stay_status=stay.stay_status,
        )


class StayService:
    @staticmethod
    async def find_stay(db: AsyncSession, stay_id: UUID) -> Optional[StaySnapshot]:
        result = await fetch(db, select(Stay).where(Stay.id == stay_id), "load stay")
        stay = result.unique().scalar_one_or_none()
        return StaySnapshot.from_stay(stay) if stay else None

    @staticmethod
    async def get_stay(db: AsyncSession, stay_id: UUID) -> StaySnapshot:
        """Raises StayNotFound for an unknown stay id."""
        snapshot = await StayService.find_stay(db, stay_id)
        if snapshot is None:
            raise StayNotFound(stay_id)
        return snapshot

    @staticmethod
    async def list_stays(
        db: AsyncSession,
        status: Optional[StayStatus] = None,
    ) -> List[StaySnapshot]:
        stmt = select(Stay).order_by(Stay.stay_date.desc())
        if status is not None:
            stmt = stmt.where(Stay.stay_status == status)
        result = await fetch(db, stmt, "list stays")
        return [StaySnapshot.from_stay(s) for s in result.unique().scalars().all()]

    @staticmethod
    async def list_bill_types(db: AsyncSession) -> List[BillType]:
        result = await fetch(
            db,
            select(BillType).order_by(BillType.billtype_no, BillType.bill_type),
            "list bill types",
        )
        return list(result.scalars().all())

    @staticmethod
    async def load_rate_catalog(db: AsyncSession) -> RateCatalog:
        """Snapshot of current unit prices, matched to categories by bill type name."""
        bill_types = await StayService.list_bill_types(db)
        return RateCatalog.from_bill_types(
            bill_types,
            keywords={
                RateCategory.WATER: settings.WATER_RATE_KEYWORDS,
                RateCategory.ELECTRICITY: settings.ELECTRICITY_RATE_KEYWORDS,
            },
            strict=settings.STRICT_RATES,
        )
