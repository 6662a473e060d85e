# numbers_erp/services/payroll.py - Tutor wages owed for completed lessons
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, List, Sequence
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from numbers_erp.models.employee import Employee
from numbers_erp.models.lesson import Lesson
from numbers_erp.services.billing import ZERO, calculate_lesson_amount, to_decimal
from numbers_erp.services.lessons import lesson_to_dict

logger = logging.getLogger(__name__)


class WageCalculator(ABC):
    """Hourly wage a tutor earns for one lesson (Strategy Pattern)."""

    @abstractmethod
    def hourly_wage(self, tutor: Employee, lesson: Lesson) -> Decimal:
        raise NotImplementedError

    def lesson_wage(self, tutor: Employee, lesson: Lesson) -> Decimal:
        return calculate_lesson_amount(self.hourly_wage(tutor, lesson), lesson.duration_minutes)


class CustomWageCalculator(WageCalculator):
    """Flat hourly wage set on the tutor."""

    def hourly_wage(self, tutor: Employee, lesson: Lesson) -> Decimal:
        return to_decimal(tutor.custom_wage)


class ServiceWageCalculator(WageCalculator):
    """Hourly cost of the lesson's service; lessons without one pay nothing."""

    def hourly_wage(self, tutor: Employee, lesson: Lesson) -> Decimal:
        if lesson.service is None:
            return ZERO
        return to_decimal(lesson.service.cost_per_hour)


def calculator_for(tutor: Employee) -> WageCalculator:
    if tutor.lesson_wage_type == "custom" and tutor.custom_wage:
        return CustomWageCalculator()
    return ServiceWageCalculator()


def summarize_tutor(tutor: Employee, lessons: Sequence[Lesson]) -> Dict[str, Any]:
    calculator = calculator_for(tutor)
    completed = [lesson for lesson in lessons if lesson.status == "completed"]
    pending = [lesson for lesson in lessons if lesson.status == "scheduled"]

    return {
        "id": tutor.id,
        "first_name": tutor.first_name,
        "last_name": tutor.last_name,
        "email": tutor.email,
        "lesson_wage_type": tutor.lesson_wage_type,
        "custom_wage": tutor.custom_wage,
        "completed_lessons": len(completed),
        "pending_lessons": len(pending),
        "total_owed": sum((calculator.lesson_wage(tutor, lesson) for lesson in completed), ZERO),
        "last_lesson_date": max((lesson.start_time for lesson in lessons), default=None),
    }


class PayrollService:
    def __init__(self, db: Session):
        self.db = db

    def _lessons_for(self, workspace_id: UUID, tutor_ids: Sequence[UUID]) -> List[Lesson]:
        if not tutor_ids:
            return []
        return self.db.execute(
            select(Lesson)
            .options(joinedload(Lesson.service), joinedload(Lesson.student))
            .where(Lesson.workspace_id == workspace_id, Lesson.tutor_id.in_(tutor_ids))
            .order_by(Lesson.start_time.desc())
        ).unique().scalars().all()

    def list_payroll(self, workspace_id: UUID) -> List[Dict[str, Any]]:
        tutors = self.db.execute(
            select(Employee)
            .where(Employee.workspace_id == workspace_id, Employee.type == "tutor")
            .order_by(Employee.first_name)
        ).scalars().all()

        by_tutor: Dict[UUID, List[Lesson]] = {tutor.id: [] for tutor in tutors}
        for lesson in self._lessons_for(workspace_id, list(by_tutor)):
            by_tutor[lesson.tutor_id].append(lesson)

        return [summarize_tutor(tutor, by_tutor[tutor.id]) for tutor in tutors]

    def tutor_payroll(self, workspace_id: UUID, tutor_id: UUID) -> Dict[str, Any]:
        tutor = self.db.execute(
            select(Employee).where(
                Employee.id == tutor_id,
                Employee.workspace_id == workspace_id,
                Employee.type == "tutor",
            )
        ).scalar_one_or_none()
        if not tutor:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tutor not found")

        lessons = self._lessons_for(workspace_id, [tutor.id])
        calculator = calculator_for(tutor)

        summary = summarize_tutor(tutor, lessons)
        summary["lessons"] = [
            {**lesson_to_dict(lesson), "wage_amount": calculator.lesson_wage(tutor, lesson)}
            for lesson in lessons
        ]
        return summary
