from pydantic import BaseModel, Field, ConfigDict
from uuid import UUID
from datetime import datetime


class SlipCreate(BaseModel):
    """Reference to an already uploaded artifact (public URL or object key)."""
    slip_url: str = Field(..., min_length=1, max_length=1000)


class SlipResponse(BaseModel):
    id: UUID
    payment_id: UUID
    stay_id: UUID
    user_id: UUID
    slip_url: str
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)
