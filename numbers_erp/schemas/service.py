# numbers_erp/schemas/service.py
from pydantic import BaseModel, validator
from typing import Optional
from decimal import Decimal
from uuid import UUID


class ServiceCreate(BaseModel):
    name: str
    description: Optional[str] = None
    rate_per_hour: Decimal
    cost_per_hour: Optional[Decimal] = None

    @validator("name")
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Service name cannot be empty")
        return v.strip()

    @validator("rate_per_hour", "cost_per_hour")
    def validate_amounts(cls, v):
        if v is not None and v < 0:
            raise ValueError("Hourly amounts cannot be negative")
        return v


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    rate_per_hour: Optional[Decimal] = None
    cost_per_hour: Optional[Decimal] = None


class ServiceOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str]
    rate_per_hour: Decimal
    cost_per_hour: Optional[Decimal]

    class Config:
        from_attributes = True


class LocationCreate(BaseModel):
    name: str
    address: Optional[str] = None


class LocationOut(BaseModel):
    id: UUID
    name: str
    address: Optional[str]

    class Config:
        from_attributes = True
