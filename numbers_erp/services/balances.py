# numbers_erp/services/balances.py - Parent account balances and per-parent lesson views
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, List
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select, func
from sqlalchemy.orm import Session, joinedload

from numbers_erp.models.invoice import Invoice
from numbers_erp.models.lesson import Lesson
from numbers_erp.models.parent import Parent
from numbers_erp.models.student import Student
from numbers_erp.services.billing import ZERO, lesson_amount, to_decimal
from numbers_erp.services.lessons import lesson_to_dict

logger = logging.getLogger(__name__)


class BalanceService:
    def __init__(self, db: Session):
        self.db = db

    def get_parent(self, workspace_id: UUID, parent_id: UUID) -> Parent:
        parent = self.db.execute(
            select(Parent).where(Parent.id == parent_id, Parent.workspace_id == workspace_id)
        ).scalar_one_or_none()
        if not parent:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent not found")
        return parent

    def list_balances(self, workspace_id: UUID) -> List[Dict[str, Any]]:
        """
        Every parent in the workspace, highest balance first, with
        student_count, total_unbilled and total_paid.
        """
        parents = self.db.execute(
            select(Parent)
            .where(Parent.workspace_id == workspace_id)
            .order_by(Parent.current_balance.desc(), Parent.last_name)
        ).scalars().all()

        student_rows = self.db.execute(
            select(Student.id, Student.parent_id).where(
                Student.workspace_id == workspace_id,
                Student.parent_id.is_not(None),
            )
        ).all()
        parent_of = {student_id: parent_id for student_id, parent_id in student_rows}
        student_counts: Dict[UUID, int] = defaultdict(int)
        for parent_id in parent_of.values():
            student_counts[parent_id] += 1

        unbilled: Dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        unbilled_lessons = self.db.execute(
            select(Lesson)
            .options(joinedload(Lesson.service))
            .where(Lesson.workspace_id == workspace_id, Lesson.billing_status == "unbilled")
        ).scalars().all()
        for lesson in unbilled_lessons:
            parent_id = parent_of.get(lesson.student_id)
            if parent_id:
                unbilled[parent_id] += lesson_amount(lesson)

        paid: Dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        paid_rows = self.db.execute(
            select(Invoice.student_id, func.sum(Invoice.amount_paid))
            .where(Invoice.workspace_id == workspace_id)
            .group_by(Invoice.student_id)
        ).all()
        for student_id, amount in paid_rows:
            parent_id = parent_of.get(student_id)
            if parent_id:
                paid[parent_id] += to_decimal(amount)

        return [
            {
                "id": parent.id,
                "first_name": parent.first_name,
                "last_name": parent.last_name,
                "email": parent.email,
                "phone": parent.phone,
                "current_balance": to_decimal(parent.current_balance),
                "student_count": student_counts[parent.id],
                "total_unbilled": unbilled[parent.id],
                "total_paid": paid[parent.id],
            }
            for parent in parents
        ]

    def parent_lessons(self, workspace_id: UUID, parent_id: UUID) -> List[Dict[str, Any]]:
        """Lessons of the parent's own students only, newest first"""
        parent = self.get_parent(workspace_id, parent_id)

        lessons = self.db.execute(
            select(Lesson)
            .join(Student, Student.id == Lesson.student_id)
            .options(
                joinedload(Lesson.student),
                joinedload(Lesson.tutor),
                joinedload(Lesson.service),
            )
            .where(
                Lesson.workspace_id == workspace_id,
                Student.workspace_id == workspace_id,
                Student.parent_id == parent.id,
            )
            .order_by(Lesson.start_time.desc())
        ).unique().scalars().all()

        return [lesson_to_dict(lesson) for lesson in lessons]
