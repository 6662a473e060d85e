# numbers_erp/schemas/parent.py
from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID


class ParentUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    current_balance: Optional[Decimal] = None


class ParentOut(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    current_balance: Decimal
    student_count: int = 0
    created_at: datetime

    class Config:
        from_attributes = True
