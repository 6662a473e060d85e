# numbers_erp/schemas/invoice.py
from pydantic import BaseModel, validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

INVOICE_STATUSES = ("draft", "pending", "sent", "paid", "overdue", "cancelled")


def _check_status(v):
    if v is not None and v not in INVOICE_STATUSES:
        raise ValueError(f"Status must be one of: {INVOICE_STATUSES}")
    return v


def _check_amount(v):
    if v is not None and v < 0:
        raise ValueError("Amount must be positive")
    return v


class InvoiceCreate(BaseModel):
    student_id: UUID
    amount_due: Decimal
    amount_paid: Decimal = Decimal("0.00")
    due_date: Optional[date] = None
    status: str = "draft"
    description: Optional[str] = None

    _status = validator("status", allow_reuse=True)(_check_status)
    _amounts = validator("amount_due", "amount_paid", allow_reuse=True)(_check_amount)


class InvoiceUpdate(BaseModel):
    amount_due: Optional[Decimal] = None
    amount_paid: Optional[Decimal] = None
    due_date: Optional[date] = None
    status: Optional[str] = None
    description: Optional[str] = None

    _status = validator("status", allow_reuse=True)(_check_status)
    _amounts = validator("amount_due", "amount_paid", allow_reuse=True)(_check_amount)


class InvoiceFromLessonsIn(BaseModel):
    lesson_ids: List[UUID]


class LineItemOut(BaseModel):
    id: UUID
    lesson_id: UUID
    service_id: Optional[UUID]
    description: str
    rate: Decimal
    duration_minutes: int
    subtotal: Decimal

    class Config:
        from_attributes = True


class InvoiceOut(BaseModel):
    id: UUID
    invoice_number: str
    student_id: UUID
    student_name: Optional[str] = None
    amount_due: Decimal
    amount_paid: Decimal
    due_date: Optional[date]
    status: str
    description: Optional[str]
    created_at: datetime


class InvoiceDetail(InvoiceOut):
    line_items: List[LineItemOut] = []
