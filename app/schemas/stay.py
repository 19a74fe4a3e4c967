from typing import Optional
from pydantic import BaseModel, ConfigDict
from uuid import UUID
from decimal import Decimal

from app.models.enums import StayStatus


class StayResponse(BaseModel):
    stay_id: UUID
    user_id: UUID
    user_name: str
    room_id: UUID
    room_num: str
    room_price: Decimal
    stay_status: StayStatus

    model_config = ConfigDict(from_attributes=True)


class BillTypeResponse(BaseModel):
    id: UUID
    billtype_no: Optional[int] = None
    bill_type: str
    unit_price: Decimal

    model_config = ConfigDict(from_attributes=True)
