from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional


class BookingCreate(BaseModel):
    package_id: int
    slot_id: int
    notes: Optional[str] = Field(default=None, max_length=2000)


class BookingStatusUpdate(BaseModel):
    # validated by the service so an unknown value maps to InvalidStatus
    status: str


class BookingResponse(BaseModel):
    id: int
    user_id: int
    studio_id: int
    package_id: int
    slot_id: int
    status: str
    total_price: Decimal
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
