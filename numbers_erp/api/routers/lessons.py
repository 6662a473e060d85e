# numbers_erp/api/routers/lessons.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Dict, Any, List, Optional
from uuid import UUID
from datetime import datetime

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.tenancy import require_admin, require_roles
from numbers_erp.models.user import Role
from numbers_erp.schemas.lesson import LessonCreate, LessonUpdate, LessonOut
from numbers_erp.services.lessons import LessonService, lesson_to_dict

router = APIRouter()

ANY_ROLE = [Role.ADMIN, Role.TUTOR, Role.PARENT, Role.STUDENT]


@router.get("/", response_model=List[LessonOut])
async def list_lessons(
    tutor_id: Optional[UUID] = Query(None),
    student_id: Optional[UUID] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    billing_status: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None, description="Lessons starting at or after"),
    end: Optional[datetime] = Query(None, description="Lessons starting before"),
    ctx: Dict[str, Any] = Depends(require_roles(ANY_ROLE)),
    db: Session = Depends(get_db)
):
    """Admins see every lesson; other roles see only their own"""
    lessons = LessonService(db).list_lessons(
        ctx["workspace_id"], ctx["user"], ctx["role"],
        tutor_id=tutor_id,
        student_id=student_id,
        status_filter=status_filter,
        billing_status=billing_status,
        start=start,
        end=end,
    )
    return [lesson_to_dict(lesson) for lesson in lessons]


@router.post("/", response_model=LessonOut, status_code=status.HTTP_201_CREATED)
async def create_lesson(
    lesson_data: LessonCreate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    lesson = LessonService(db).create_lesson(ctx["workspace_id"], lesson_data, ctx["user"])
    return lesson_to_dict(lesson)


@router.get("/{lesson_id}", response_model=LessonOut)
async def get_lesson(
    lesson_id: UUID,
    ctx: Dict[str, Any] = Depends(require_roles(ANY_ROLE)),
    db: Session = Depends(get_db)
):
    service = LessonService(db)
    visible = service.list_lessons(ctx["workspace_id"], ctx["user"], ctx["role"])
    lesson = next((lesson for lesson in visible if lesson.id == lesson_id), None)
    if lesson is None:
        # Distinguish a missing lesson from someone else's
        service.get_lesson(ctx["workspace_id"], lesson_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return lesson_to_dict(lesson)


@router.put("/{lesson_id}", response_model=LessonOut)
async def update_lesson(
    lesson_id: UUID,
    lesson_data: LessonUpdate,
    ctx: Dict[str, Any] = Depends(require_roles([Role.ADMIN, Role.TUTOR])),
    db: Session = Depends(get_db)
):
    """Tutors may only change the status of their own lessons"""
    service = LessonService(db)
    if ctx["role"] is Role.TUTOR:
        lesson = service.get_lesson(ctx["workspace_id"], lesson_id)
        if lesson.tutor_id != ctx["user"].employee_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        if lesson_data.model_dump(exclude_unset=True).keys() - {"status", "description"}:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Tutors can only update lesson status and notes"
            )

    lesson = service.update_lesson(ctx["workspace_id"], lesson_id, lesson_data, ctx["user"])
    return lesson_to_dict(lesson)


@router.delete("/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lesson(
    lesson_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    LessonService(db).delete_lesson(ctx["workspace_id"], lesson_id, ctx["user"])
