# numbers_erp/services/dashboard.py - Current month overview
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.orm import Session, joinedload

from numbers_erp.models.invoice import Invoice
from numbers_erp.models.lesson import Lesson
from numbers_erp.models.student import Student
from numbers_erp.services.billing import ZERO, to_decimal

RECENT_LESSON_LIMIT = 10
CHART_DAYS = 30


def month_bounds(today: date) -> Tuple[datetime, datetime]:
    """[first day of this month, first day of next month)"""
    start = datetime(today.year, today.month, 1)
    if today.month == 12:
        end = datetime(today.year + 1, 1, 1)
    else:
        end = datetime(today.year, today.month + 1, 1)
    return start, end


class DashboardService:
    def __init__(self, db: Session):
        self.db = db

    def _count(self, query) -> int:
        return self.db.execute(query).scalar_one() or 0

    def summary(self, workspace_id: UUID, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or datetime.utcnow().date()
        month_start, month_end = month_bounds(today)

        total_revenue = self.db.execute(
            select(func.sum(Invoice.amount_due)).where(
                Invoice.workspace_id == workspace_id,
                Invoice.created_at >= month_start,
                Invoice.created_at < month_end,
            )
        ).scalar_one()

        new_customers = self._count(
            select(func.count(Student.id)).where(
                Student.workspace_id == workspace_id,
                Student.created_at >= month_start,
                Student.created_at < month_end,
            )
        )
        active_accounts = self._count(
            select(func.count(Student.id)).where(Student.workspace_id == workspace_id)
        )
        total_lessons = self._count(
            select(func.count(Lesson.id)).where(
                Lesson.workspace_id == workspace_id,
                Lesson.start_time >= month_start,
                Lesson.start_time < month_end,
            )
        )

        recent = self.db.execute(
            select(Lesson)
            .options(joinedload(Lesson.student), joinedload(Lesson.service))
            .where(Lesson.workspace_id == workspace_id)
            .order_by(Lesson.start_time.desc())
            .limit(RECENT_LESSON_LIMIT)
        ).unique().scalars().all()

        return {
            "total_revenue": to_decimal(total_revenue) if total_revenue is not None else ZERO,
            "new_customers": new_customers,
            "active_accounts": active_accounts,
            "total_lessons": total_lessons,
            "growth_rate": "-%",
            "recent_lessons": [
                {
                    "id": lesson.id,
                    "title": lesson.title or "Lesson",
                    "service_type": lesson.service.name if lesson.service else "Unknown Service",
                    "status": lesson.status,
                    "start_time": lesson.start_time,
                    "student_name": lesson.student.full_name if lesson.student else "Unknown Student",
                }
                for lesson in recent
            ],
            "lessons_chart_data": self.lessons_chart(workspace_id, today),
        }

    def lessons_chart(self, workspace_id: UUID, today: date):
        """Lessons per day for the last 30 days, oldest first, gaps filled with 0"""
        first_day = today - timedelta(days=CHART_DAYS - 1)
        starts = self.db.execute(
            select(Lesson.start_time).where(
                Lesson.workspace_id == workspace_id,
                Lesson.start_time >= datetime.combine(first_day, datetime.min.time()),
                Lesson.start_time < datetime.combine(today + timedelta(days=1), datetime.min.time()),
            )
        ).scalars().all()

        per_day: Dict[date, int] = {}
        for start in starts:
            per_day[start.date()] = per_day.get(start.date(), 0) + 1

        return [
            {"date": day, "lessons": per_day.get(day, 0)}
            for day in (first_day + timedelta(days=offset) for offset in range(CHART_DAYS))
        ]
