# numbers_erp/schemas/lesson.py
from pydantic import BaseModel, validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID

LESSON_STATUSES = ("scheduled", "completed", "canceled")
BILLING_STATUSES = ("unbilled", "invoiced", "paid")


class LessonCreate(BaseModel):
    tutor_id: UUID
    student_id: UUID
    service_id: Optional[UUID] = None
    location_id: Optional[UUID] = None
    title: Optional[str] = None
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    rate: Optional[Decimal] = None  # defaults to the service rate
    status: str = "scheduled"

    @validator("end_time")
    def validate_end_time(cls, v, values):
        start = values.get("start_time")
        if start and v <= start:
            raise ValueError("End time must be after start time")
        return v

    @validator("rate")
    def validate_rate(cls, v):
        if v is not None and v < 0:
            raise ValueError("Rate cannot be negative")
        return v

    @validator("status")
    def validate_status(cls, v):
        if v not in LESSON_STATUSES:
            raise ValueError(f"Status must be one of: {LESSON_STATUSES}")
        return v


class LessonUpdate(BaseModel):
    tutor_id: Optional[UUID] = None
    student_id: Optional[UUID] = None
    service_id: Optional[UUID] = None
    location_id: Optional[UUID] = None
    title: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    rate: Optional[Decimal] = None
    status: Optional[str] = None

    # Omit a field to keep it; these columns cannot be cleared
    @validator("tutor_id", "student_id", "start_time", "end_time", "status", pre=True)
    def reject_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @validator("end_time")
    def validate_end_time(cls, v, values):
        start = values.get("start_time")
        if start and v <= start:
            raise ValueError("End time must be after start time")
        return v

    @validator("rate")
    def validate_rate(cls, v):
        if v is not None and v < 0:
            raise ValueError("Rate cannot be negative")
        return v

    @validator("status")
    def validate_status(cls, v):
        if v not in LESSON_STATUSES:
            raise ValueError(f"Status must be one of: {LESSON_STATUSES}")
        return v


class LessonOut(BaseModel):
    id: UUID
    tutor_id: UUID
    student_id: UUID
    service_id: Optional[UUID]
    location_id: Optional[UUID]
    invoice_id: Optional[UUID]
    title: Optional[str]
    description: Optional[str]
    start_time: datetime
    end_time: datetime
    duration_minutes: Optional[int]
    rate: Optional[Decimal]
    status: str
    billing_status: str
    student_name: Optional[str] = None
    tutor_name: Optional[str] = None
    service_name: Optional[str] = None
    calculated_amount: Optional[Decimal] = None
