"""Stay registry models.

These tables are owned by the room/tenant management side of the system. The
billing engine only reads them.
"""

from sqlalchemy import Column, Date, Enum, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, enum_values
from app.models.enums import StayStatus


class Occupant(BaseModel):
    """Tenant or admin user, as far as billing needs to know them."""
    __tablename__ = "users"

    user_name = Column(String(255), nullable=False)

    stays = relationship("Stay", back_populates="occupant")


class Room(BaseModel):
    __tablename__ = "rooms"

    room_num = Column(String(50), nullable=False, unique=True)
    room_price = Column(Numeric(12, 2), nullable=False)

    stays = relationship("Stay", back_populates="room")


class Stay(BaseModel):
    """
    A tenancy interval linking an occupant to a room.

    ``room_price`` is captured when the stay starts and is what bills use,
    even if the room's list price changes later.
    """
    __tablename__ = "stays"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    room_id = Column(Uuid(as_uuid=True), ForeignKey("rooms.id", ondelete="RESTRICT"), nullable=False, index=True)
    room_price = Column(Numeric(12, 2), nullable=False)
    stay_date = Column(Date, nullable=False)
    stay_dateout = Column(Date, nullable=True)
    stay_status = Column(
        Enum(StayStatus, name="stay_status", values_callable=enum_values),
        default=StayStatus.CHECKED_IN,
        nullable=False,
        index=True,
    )

    occupant = relationship("Occupant", back_populates="stays", lazy="joined")
    room = relationship("Room", back_populates="stays", lazy="joined")

    def __repr__(self) -> str:
        return f"<Stay {self.id} room={self.room_id} status={self.stay_status}>"


class BillType(BaseModel):
    """Named utility category with a unit price (e.g. water per unit)."""
    __tablename__ = "bill_types"

    # Legacy numeric identifier shown in the admin UI
    billtype_no = Column(Integer, nullable=True, unique=True)
    bill_type = Column(String(100), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)

    def __repr__(self) -> str:
        return f"<BillType {self.bill_type} @ {self.unit_price}>"
