# numbers_erp/services/calendar.py - Lessons as calendar events
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from numbers_erp.models.lesson import Lesson
from numbers_erp.models.service import Location
from numbers_erp.models.user import User, Role
from numbers_erp.services.lessons import lesson_to_dict, scope_to_role

STATUS_COLORS = {
    "completed": "#22c55e",
    "scheduled": "#3b82f6",
    "canceled": "#ef4444",
}
DEFAULT_COLOR = "#6b7280"
TEXT_COLOR = "#ffffff"


def status_color(lesson_status: Optional[str]) -> str:
    return STATUS_COLORS.get(lesson_status, DEFAULT_COLOR)


def lesson_to_event(lesson: Lesson) -> Dict[str, Any]:
    color = status_color(lesson.status)
    student = lesson.student.full_name if lesson.student else "Unknown"
    return {
        "id": str(lesson.id),
        "title": lesson.title or f"Lesson with {student}",
        "start": lesson.start_time.isoformat(),
        "end": lesson.end_time.isoformat(),
        "backgroundColor": color,
        "borderColor": color,
        "textColor": TEXT_COLOR,
        "extendedProps": {"lesson": lesson_to_dict(lesson)},
    }


def _is_set(value) -> bool:
    return value is not None and value != "all"


def _parse_id(value: str, label: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {label} filter")


class CalendarService:
    def __init__(self, db: Session):
        self.db = db

    def _lessons(self, workspace_id: UUID, user: User, role: Role):
        query = (
            select(Lesson)
            .options(
                joinedload(Lesson.student),
                joinedload(Lesson.tutor),
                joinedload(Lesson.service),
            )
            .where(Lesson.workspace_id == workspace_id)
            .order_by(Lesson.start_time)
        )
        return scope_to_role(query, user, role)

    def events(
        self,
        workspace_id: UUID,
        user: User,
        role: Role,
        tutor_id: Optional[str] = None,
        student_id: Optional[str] = None,
        service_id: Optional[str] = None,
        status_filter: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Filters left empty or set to "all" do not narrow the result"""
        query = self._lessons(workspace_id, user, role)
        if _is_set(tutor_id):
            query = query.where(Lesson.tutor_id == _parse_id(tutor_id, "tutor"))
        if _is_set(student_id):
            query = query.where(Lesson.student_id == _parse_id(student_id, "student"))
        if _is_set(service_id):
            query = query.where(Lesson.service_id == _parse_id(service_id, "service"))
        if _is_set(status_filter):
            query = query.where(Lesson.status == status_filter)

        lessons = self.db.execute(query).unique().scalars().all()
        return [lesson_to_event(lesson) for lesson in lessons]

    def filter_options(self, workspace_id: UUID, user: User, role: Role) -> Dict[str, List[Dict[str, Any]]]:
        """Tutors, students and services that appear on lessons, plus every location"""
        lessons = self.db.execute(self._lessons(workspace_id, user, role)).unique().scalars().all()

        tutors: Dict[UUID, Dict[str, Any]] = {}
        students: Dict[UUID, Dict[str, Any]] = {}
        services: Dict[UUID, Dict[str, Any]] = {}
        for lesson in lessons:
            if lesson.tutor:
                tutors.setdefault(lesson.tutor.id, {"id": lesson.tutor.id, "name": lesson.tutor.full_name})
            if lesson.student:
                students.setdefault(lesson.student.id, {"id": lesson.student.id, "name": lesson.student.full_name})
            if lesson.service:
                services.setdefault(lesson.service.id, {"id": lesson.service.id, "name": lesson.service.name})

        locations = self.db.execute(
            select(Location).where(Location.workspace_id == workspace_id).order_by(Location.name)
        ).scalars().all()

        return {
            "tutors": sorted(tutors.values(), key=lambda t: t["name"]),
            "students": sorted(students.values(), key=lambda s: s["name"]),
            "services": sorted(services.values(), key=lambda s: s["name"]),
            "locations": [
                {"id": location.id, "name": location.name, "address": location.address}
                for location in locations
            ],
        }
