from pydantic import BaseModel, ConfigDict, Field
from decimal import Decimal
from typing import Optional


class PackageBase(BaseModel):
    studio_id: int
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    duration_minutes: int = Field(default=60, gt=0)


class PackageCreate(PackageBase):
    pass


class PackageResponse(PackageBase):
    id: int

    model_config = ConfigDict(from_attributes=True)
