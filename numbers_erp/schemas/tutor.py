# numbers_erp/schemas/tutor.py - Employee (tutor/admin staff) schemas
from pydantic import BaseModel, EmailStr, validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from numbers_erp.schemas.student import split_subjects

EMPLOYEE_TYPES = ("tutor", "admin")
WAGE_TYPES = ("custom", "service-based")


class TutorCreate(BaseModel):
    first_name: str
    last_name: str
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    type: str = "tutor"
    position_title: Optional[str] = None
    hire_date: Optional[date] = None
    lesson_wage_type: str = "service-based"
    custom_wage: Optional[Decimal] = None
    subjects: List[str] = []
    bio: Optional[str] = None
    send_invitation: bool = False

    @validator("first_name", "last_name")
    def validate_names(cls, v):
        if not v or not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @validator("type")
    def validate_type(cls, v):
        if v not in EMPLOYEE_TYPES:
            raise ValueError(f"Type must be one of: {EMPLOYEE_TYPES}")
        return v

    @validator("lesson_wage_type")
    def validate_wage_type(cls, v):
        if v not in WAGE_TYPES:
            raise ValueError(f"Wage type must be one of: {WAGE_TYPES}")
        return v

    @validator("custom_wage")
    def validate_custom_wage(cls, v):
        if v is not None and v < 0:
            raise ValueError("Custom wage cannot be negative")
        return v

    @validator("subjects", pre=True)
    def parse_subjects(cls, v):
        return split_subjects(v)


class TutorUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    type: Optional[str] = None
    position_title: Optional[str] = None
    status: Optional[str] = None
    hire_date: Optional[date] = None
    lesson_wage_type: Optional[str] = None
    custom_wage: Optional[Decimal] = None
    subjects: Optional[List[str]] = None
    bio: Optional[str] = None

    @validator("type")
    def validate_type(cls, v):
        if v is not None and v not in EMPLOYEE_TYPES:
            raise ValueError(f"Type must be one of: {EMPLOYEE_TYPES}")
        return v

    @validator("lesson_wage_type")
    def validate_wage_type(cls, v):
        if v is not None and v not in WAGE_TYPES:
            raise ValueError(f"Wage type must be one of: {WAGE_TYPES}")
        return v

    @validator("subjects", pre=True)
    def parse_subjects(cls, v):
        return None if v is None else split_subjects(v)


class TutorOut(BaseModel):
    id: UUID
    type: str
    first_name: str
    last_name: str
    full_name: str
    email: Optional[str]
    phone: Optional[str]
    position_title: Optional[str]
    status: str
    hire_date: Optional[date]
    lesson_wage_type: str
    custom_wage: Optional[Decimal]
    subjects: List[str]
    bio: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
