# numbers_erp/schemas/report.py - Dashboard and financial report payloads
from pydantic import BaseModel
from typing import List
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID


class RecentLesson(BaseModel):
    id: UUID
    title: str
    service_type: str
    status: str
    start_time: datetime
    student_name: str


class ChartPoint(BaseModel):
    date: date
    lessons: int


class DashboardOut(BaseModel):
    total_revenue: Decimal
    new_customers: int
    active_accounts: int
    total_lessons: int
    growth_rate: str
    recent_lessons: List[RecentLesson]
    lessons_chart_data: List[ChartPoint]


class TopTutor(BaseModel):
    name: str
    revenue: Decimal


class FinancialReportOut(BaseModel):
    total_revenue: Decimal
    monthly_revenue: Decimal
    outstanding_balance: Decimal
    average_invoice_value: Decimal
    payment_collection_rate: float
    total_lessons_delivered: int
    average_hourly_rate: Decimal
    top_performing_tutor: TopTutor
    monthly_growth: float
    unpaid_invoices_count: int
    total_active_parents: int
    average_lesson_duration: float
