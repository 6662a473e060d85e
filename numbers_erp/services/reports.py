# numbers_erp/services/reports.py - Financial metrics across invoices, parents and lessons
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from numbers_erp.core.config import settings
from numbers_erp.models.invoice import Invoice
from numbers_erp.models.lesson import Lesson
from numbers_erp.models.parent import Parent
from numbers_erp.services.billing import CENT, ZERO, calculate_lesson_amount, effective_minutes, to_decimal
from numbers_erp.services.dashboard import month_bounds


def _in_range(moment: datetime, start: datetime, end: datetime) -> bool:
    return start <= moment < end


def _percent(part: Decimal, whole: Decimal) -> float:
    if not whole:
        return 0.0
    return float((part / whole * 100).quantize(CENT, rounding=ROUND_HALF_UP))


def _average(total: Decimal, count: int) -> Decimal:
    if not count:
        return ZERO
    return (total / count).quantize(CENT, rounding=ROUND_HALF_UP)


class ReportService:
    def __init__(self, db: Session):
        self.db = db

    def financial_report(self, workspace_id: UUID, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or datetime.utcnow().date()
        month_start, month_end = month_bounds(today)
        previous_start, _ = month_bounds(_previous_month(month_start.date()))

        invoices = self.db.execute(
            select(Invoice).where(Invoice.workspace_id == workspace_id)
        ).scalars().all()
        parents = self.db.execute(
            select(Parent).where(Parent.workspace_id == workspace_id)
        ).scalars().all()
        lessons = self.db.execute(
            select(Lesson)
            .options(joinedload(Lesson.tutor))
            .where(Lesson.workspace_id == workspace_id)
        ).unique().scalars().all()

        total_revenue = sum((to_decimal(inv.amount_paid) for inv in invoices), ZERO)
        total_billed = sum((to_decimal(inv.amount_due) for inv in invoices), ZERO)
        monthly_revenue = sum(
            (to_decimal(inv.amount_paid) for inv in invoices if _in_range(inv.created_at, month_start, month_end)),
            ZERO,
        )
        previous_revenue = sum(
            (to_decimal(inv.amount_paid) for inv in invoices if _in_range(inv.created_at, previous_start, month_start)),
            ZERO,
        )

        tutor_revenue: Dict[str, Decimal] = defaultdict(lambda: ZERO)
        for lesson in lessons:
            if lesson.tutor and lesson.status == "completed":
                tutor_revenue[lesson.tutor.full_name] += calculate_lesson_amount(lesson.rate, lesson.duration_minutes)
        if tutor_revenue:
            top_name, top_revenue = max(tutor_revenue.items(), key=lambda item: item[1])
        else:
            top_name, top_revenue = "No data", ZERO

        return {
            "total_revenue": total_revenue,
            "monthly_revenue": monthly_revenue,
            "outstanding_balance": sum((to_decimal(p.current_balance) for p in parents), ZERO),
            "average_invoice_value": _average(total_billed, len(invoices)),
            "payment_collection_rate": _percent(total_revenue, total_billed),
            "total_lessons_delivered": sum(1 for lesson in lessons if lesson.status == "completed"),
            "average_hourly_rate": _average(sum((to_decimal(l.rate) for l in lessons), ZERO), len(lessons)),
            "top_performing_tutor": {"name": top_name, "revenue": top_revenue},
            "monthly_growth": _percent(monthly_revenue - previous_revenue, previous_revenue),
            "unpaid_invoices_count": sum(1 for inv in invoices if inv.status in ("pending", "sent")),
            "total_active_parents": len(parents),
            "average_lesson_duration": (
                sum(effective_minutes(l.duration_minutes) for l in lessons) / len(lessons)
                if lessons else float(settings.DEFAULT_LESSON_MINUTES)
            ),
        }


def _previous_month(first_of_month: date) -> date:
    if first_of_month.month == 1:
        return date(first_of_month.year - 1, 12, 1)
    return date(first_of_month.year, first_of_month.month - 1, 1)
