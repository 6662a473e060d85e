# numbers_erp/schemas/student.py
from pydantic import BaseModel, EmailStr, validator
from typing import Optional, List
from datetime import date, datetime
from uuid import UUID


def split_subjects(v):
    """Accept "Math, Physics" as well as ["Math", "Physics"]"""
    if v is None:
        return []
    if isinstance(v, str):
        return [s.strip() for s in v.split(",") if s.strip()]
    return [s.strip() for s in v if s and s.strip()]


class StudentCreate(BaseModel):
    first_name: str
    last_name: str
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    school: Optional[str] = None
    grade_year: Optional[str] = None
    subjects: List[str] = []

    # The parent is looked up by email within the workspace, or created
    parent_first_name: str
    parent_last_name: str
    parent_email: EmailStr
    parent_phone: Optional[str] = None

    send_invitations: bool = True

    @validator("first_name", "last_name", "parent_first_name", "parent_last_name")
    def validate_names(cls, v):
        if not v or not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @validator("subjects", pre=True)
    def parse_subjects(cls, v):
        return split_subjects(v)


class StudentUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    school: Optional[str] = None
    grade_year: Optional[str] = None
    subjects: Optional[List[str]] = None
    parent_id: Optional[UUID] = None
    status: Optional[str] = None

    @validator("subjects", pre=True)
    def parse_subjects(cls, v):
        return None if v is None else split_subjects(v)

    @validator("status")
    def validate_status(cls, v):
        if v is not None and v not in ("active", "inactive"):
            raise ValueError("Status must be active or inactive")
        return v


class StudentOut(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    full_name: str
    email: Optional[str]
    phone: Optional[str]
    school: Optional[str]
    grade_year: Optional[str]
    subjects: List[str]
    start_date: Optional[date]
    status: str
    parent_id: Optional[UUID]
    parent_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
