from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional


class StudioBase(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None
    image_url: Optional[str] = None
    opening_hour: Optional[int] = Field(default=None, ge=0, lt=24)
    closing_hour: Optional[int] = Field(default=None, ge=0, lt=24)
    is_active: bool = True


class StudioCreate(StudioBase):
    pass


class StudioUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = None
    image_url: Optional[str] = None
    opening_hour: Optional[int] = Field(default=None, ge=0, lt=24)
    closing_hour: Optional[int] = Field(default=None, ge=0, lt=24)
    is_active: Optional[bool] = None

    @field_validator("name", "is_active")
    @classmethod
    def not_null(cls, value):
        # these columns are NOT NULL; omit the field to keep the current value
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class StudioResponse(StudioBase):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
