# numbers_erp/schemas/billing.py - Parent balances and tutor payroll views
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from numbers_erp.schemas.lesson import LessonOut


class ParentBalanceOut(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    current_balance: Decimal
    student_count: int
    total_unbilled: Decimal
    total_paid: Decimal


class TutorPayrollOut(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: Optional[str]
    lesson_wage_type: str
    custom_wage: Optional[Decimal]
    completed_lessons: int
    pending_lessons: int
    total_owed: Decimal
    last_lesson_date: Optional[datetime]


class PayrollLessonOut(LessonOut):
    wage_amount: Decimal


class TutorPayrollDetail(TutorPayrollOut):
    lessons: List[PayrollLessonOut] = []
