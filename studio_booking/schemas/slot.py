import datetime as dt
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from studio_booking.utils.validation_helpers import validate_time_range


class SlotCreate(BaseModel):
    studio_id: int
    date: dt.date
    start_time: dt.time
    end_time: dt.time

    @model_validator(mode="after")
    def check_range(self):
        validate_time_range(self.start_time, self.end_time)
        return self


class SlotRange(BaseModel):
    start_time: dt.time
    end_time: dt.time

    @model_validator(mode="after")
    def check_range(self):
        validate_time_range(self.start_time, self.end_time)
        return self


class SlotBatchCreate(BaseModel):
    studio_id: int
    date: dt.date
    slots: List[SlotRange] = Field(min_length=1)


class SlotUpdate(BaseModel):
    """Partial move of a slot; omitted fields keep their value."""
    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None


class SlotResponse(BaseModel):
    id: int
    studio_id: int
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    held: bool

    model_config = ConfigDict(from_attributes=True)


class SlotGenerationResponse(BaseModel):
    message: str
    slots: List[SlotResponse]
