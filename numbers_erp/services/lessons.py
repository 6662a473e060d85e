# numbers_erp/services/lessons.py - Lesson scheduling and role-scoped lesson queries
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select, false
from sqlalchemy.orm import Session, joinedload

from numbers_erp.models.employee import Employee
from numbers_erp.models.lesson import Lesson
from numbers_erp.models.service import Service, Location
from numbers_erp.models.student import Student
from numbers_erp.models.user import User, Role
from numbers_erp.schemas.lesson import LessonCreate, LessonUpdate
from numbers_erp.services.billing import lesson_amount

logger = logging.getLogger(__name__)

# Fields that change what a lesson is billed for
BILLED_FIELDS = {"student_id", "start_time", "end_time", "rate", "service_id"}


def duration_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def lesson_to_dict(lesson: Lesson) -> Dict[str, Any]:
    """Flatten a lesson with its student, tutor and service names"""
    return {
        "id": lesson.id,
        "tutor_id": lesson.tutor_id,
        "student_id": lesson.student_id,
        "service_id": lesson.service_id,
        "location_id": lesson.location_id,
        "invoice_id": lesson.invoice_id,
        "title": lesson.title,
        "description": lesson.description,
        "start_time": lesson.start_time,
        "end_time": lesson.end_time,
        "duration_minutes": lesson.duration_minutes,
        "rate": lesson.rate,
        "status": lesson.status,
        "billing_status": lesson.billing_status,
        "student_name": lesson.student.full_name if lesson.student else "Unknown",
        "tutor_name": lesson.tutor.full_name if lesson.tutor else "Unknown",
        "service_name": lesson.service.name if lesson.service else "No Service",
        "calculated_amount": lesson_amount(lesson),
    }


def scope_to_role(query, user: User, role: Role):
    """
    Narrow a lesson query to what the caller may see.
    Admins see the whole workspace; everyone else sees only lessons tied
    to their own tutor, student or parent record.
    """
    if role is Role.ADMIN:
        return query
    if role is Role.TUTOR:
        if not user.employee_id:
            return query.where(false())
        return query.where(Lesson.tutor_id == user.employee_id)
    if role is Role.PARENT:
        if not user.parent_id:
            return query.where(false())
        return query.where(
            Lesson.student_id.in_(select(Student.id).where(Student.parent_id == user.parent_id))
        )
    if not user.student_id:
        return query.where(false())
    return query.where(Lesson.student_id == user.student_id)


class LessonService:
    def __init__(self, db: Session):
        self.db = db

    def _require(self, model, workspace_id: UUID, record_id: UUID, label: str):
        record = self.db.execute(
            select(model).where(model.id == record_id, model.workspace_id == workspace_id)
        ).scalar_one_or_none()
        if not record:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{label} does not exist in this workspace"
            )
        return record

    def list_lessons(
        self,
        workspace_id: UUID,
        user: User,
        role: Role,
        tutor_id: Optional[UUID] = None,
        student_id: Optional[UUID] = None,
        status_filter: Optional[str] = None,
        billing_status: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Lesson]:
        query = (
            select(Lesson)
            .options(
                joinedload(Lesson.student),
                joinedload(Lesson.tutor),
                joinedload(Lesson.service),
            )
            .where(Lesson.workspace_id == workspace_id)
            .order_by(Lesson.start_time.desc())
        )
        query = scope_to_role(query, user, role)

        if tutor_id:
            query = query.where(Lesson.tutor_id == tutor_id)
        if student_id:
            query = query.where(Lesson.student_id == student_id)
        if status_filter and status_filter != "all":
            query = query.where(Lesson.status == status_filter)
        if billing_status and billing_status != "all":
            query = query.where(Lesson.billing_status == billing_status)
        if start:
            query = query.where(Lesson.start_time >= start)
        if end:
            query = query.where(Lesson.start_time < end)

        return self.db.execute(query).unique().scalars().all()

    def get_lesson(self, workspace_id: UUID, lesson_id: UUID) -> Lesson:
        lesson = self.db.execute(
            select(Lesson)
            .options(
                joinedload(Lesson.student),
                joinedload(Lesson.tutor),
                joinedload(Lesson.service),
            )
            .where(Lesson.id == lesson_id, Lesson.workspace_id == workspace_id)
        ).unique().scalar_one_or_none()
        if not lesson:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found")
        return lesson

    def create_lesson(self, workspace_id: UUID, data: LessonCreate, user: User) -> Lesson:
        self._require(Employee, workspace_id, data.tutor_id, "Tutor")
        self._require(Student, workspace_id, data.student_id, "Student")

        service = None
        if data.service_id:
            service = self._require(Service, workspace_id, data.service_id, "Service")
        if data.location_id:
            self._require(Location, workspace_id, data.location_id, "Location")

        rate = data.rate
        if rate is None and service is not None:
            rate = service.rate_per_hour

        lesson = Lesson(
            workspace_id=workspace_id,
            tutor_id=data.tutor_id,
            student_id=data.student_id,
            service_id=data.service_id,
            location_id=data.location_id,
            title=data.title or (service.name if service else None),
            description=data.description,
            start_time=data.start_time,
            end_time=data.end_time,
            duration_minutes=duration_between(data.start_time, data.end_time),
            rate=rate,
            status=data.status,
            billing_status="unbilled",
        )
        self.db.add(lesson)
        self.db.commit()

        logger.info(f"Lesson {lesson.id} scheduled by {user.email}")
        return self.get_lesson(workspace_id, lesson.id)

    def update_lesson(self, workspace_id: UUID, lesson_id: UUID, data: LessonUpdate, user: User) -> Lesson:
        lesson = self.get_lesson(workspace_id, lesson_id)
        changes = data.model_dump(exclude_unset=True)

        if lesson.billing_status != "unbilled" and BILLED_FIELDS & changes.keys():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Lesson has been invoiced; only its status and notes can change"
            )

        if changes.get("tutor_id"):
            self._require(Employee, workspace_id, changes["tutor_id"], "Tutor")
        if changes.get("student_id"):
            self._require(Student, workspace_id, changes["student_id"], "Student")
        if changes.get("service_id"):
            self._require(Service, workspace_id, changes["service_id"], "Service")
        if changes.get("location_id"):
            self._require(Location, workspace_id, changes["location_id"], "Location")

        start = changes.get("start_time", lesson.start_time)
        end = changes.get("end_time", lesson.end_time)
        if end <= start:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="End time must be after start time"
            )

        for field, value in changes.items():
            setattr(lesson, field, value)
        if "start_time" in changes or "end_time" in changes:
            lesson.duration_minutes = duration_between(start, end)

        self.db.commit()
        self.db.refresh(lesson)

        logger.info(f"Lesson {lesson.id} updated by {user.email}")
        return self.get_lesson(workspace_id, lesson.id)

    def delete_lesson(self, workspace_id: UUID, lesson_id: UUID, user: User) -> None:
        lesson = self.get_lesson(workspace_id, lesson_id)
        if lesson.billing_status != "unbilled":
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Invoiced lessons cannot be deleted; delete the invoice first"
            )

        self.db.delete(lesson)
        self.db.commit()
        logger.info(f"Lesson {lesson_id} deleted by {user.email}")
