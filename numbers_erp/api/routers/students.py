# numbers_erp/api/routers/students.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import select, or_, false
from typing import Dict, Any, List, Optional
from uuid import UUID
from datetime import date
import logging

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.tenancy import require_admin, require_roles
from numbers_erp.models.user import Role
from numbers_erp.models.student import Student
from numbers_erp.models.parent import Parent
from numbers_erp.models.lesson import Lesson
from numbers_erp.models.invoice import Invoice
from numbers_erp.schemas.student import StudentCreate, StudentUpdate, StudentOut
from numbers_erp.services.invitation_service import InvitationService, InvitationError

logger = logging.getLogger(__name__)
router = APIRouter()


def student_out(student: Student) -> StudentOut:
    return StudentOut(
        id=student.id,
        first_name=student.first_name,
        last_name=student.last_name,
        full_name=student.full_name,
        email=student.email,
        phone=student.phone,
        school=student.school,
        grade_year=student.grade_year,
        subjects=student.subjects or [],
        start_date=student.start_date,
        status=student.status,
        parent_id=student.parent_id,
        parent_name=student.parent.full_name if student.parent else None,
        created_at=student.created_at,
    )


def visible_students(query, ctx: Dict[str, Any]):
    """Parents see their children; tutors see the students they teach"""
    user, role = ctx["user"], ctx["role"]
    if role is Role.PARENT:
        return query.where(Student.parent_id == user.parent_id) if user.parent_id else query.where(false())
    if role is Role.TUTOR:
        if not user.employee_id:
            return query.where(false())
        return query.where(
            Student.id.in_(select(Lesson.student_id).where(Lesson.tutor_id == user.employee_id))
        )
    return query


def get_student_or_404(db: Session, workspace_id: UUID, student_id: UUID) -> Student:
    student = db.execute(
        select(Student)
        .options(joinedload(Student.parent))
        .where(Student.id == student_id, Student.workspace_id == workspace_id)
    ).scalar_one_or_none()
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student


@router.get("/", response_model=List[StudentOut])
async def list_students(
    search: Optional[str] = Query(None, description="Match first name, last name or email"),
    status_filter: Optional[str] = Query(None, alias="status"),
    ctx: Dict[str, Any] = Depends(require_roles([Role.ADMIN, Role.TUTOR, Role.PARENT])),
    db: Session = Depends(get_db)
):
    query = (
        select(Student)
        .options(joinedload(Student.parent))
        .where(Student.workspace_id == ctx["workspace_id"])
        .order_by(Student.last_name, Student.first_name)
    )
    query = visible_students(query, ctx)

    if search:
        term = f"%{search.strip()}%"
        query = query.where(or_(
            Student.first_name.ilike(term),
            Student.last_name.ilike(term),
            Student.email.ilike(term),
        ))
    if status_filter and status_filter != "all":
        query = query.where(Student.status == status_filter)

    return [student_out(student) for student in db.execute(query).scalars().all()]


@router.post("/", response_model=StudentOut, status_code=status.HTTP_201_CREATED)
async def create_student(
    student_data: StudentCreate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Create a student, reusing the parent with the same email in this workspace
    or creating one, then invite both to sign in.
    """
    user = ctx["user"]
    workspace_id = ctx["workspace_id"]
    parent_email = student_data.parent_email.lower()

    parent = db.execute(
        select(Parent).where(Parent.workspace_id == workspace_id, Parent.email == parent_email)
    ).scalar_one_or_none()

    if not parent:
        parent = Parent(
            workspace_id=workspace_id,
            first_name=student_data.parent_first_name,
            last_name=student_data.parent_last_name,
            email=parent_email,
            phone=student_data.parent_phone,
        )
        db.add(parent)
        db.flush()
        logger.info(f"Parent {parent_email} created in workspace {workspace_id}")

    student = Student(
        workspace_id=workspace_id,
        parent_id=parent.id,
        first_name=student_data.first_name,
        last_name=student_data.last_name,
        email=student_data.email.lower() if student_data.email else None,
        phone=student_data.phone,
        school=student_data.school,
        grade_year=student_data.grade_year,
        subjects=student_data.subjects,
        start_date=date.today(),
        status="active",
    )
    db.add(student)

    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating student: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create student"
        )

    logger.info(f"Student {student.full_name} created by {user.email}")

    if student_data.send_invitations:
        invitations = InvitationService(db)
        invitees = [(parent.email, Role.PARENT, parent.first_name, parent.last_name, parent.id)]
        if student.email:
            invitees.append((student.email, Role.STUDENT, student.first_name, student.last_name, student.id))

        for email, role, first_name, last_name, record_id in invitees:
            try:
                invitations.invite(email, role, first_name, last_name, workspace_id, record_id, invited_by=user)
            except InvitationError as e:
                db.rollback()
                logger.error(f"Could not invite {role.value} {email}: {e.message}")

    return student_out(get_student_or_404(db, workspace_id, student.id))


@router.get("/{student_id}", response_model=StudentOut)
async def get_student(
    student_id: UUID,
    ctx: Dict[str, Any] = Depends(require_roles([Role.ADMIN, Role.TUTOR, Role.PARENT, Role.STUDENT])),
    db: Session = Depends(get_db)
):
    user, role = ctx["user"], ctx["role"]
    student = get_student_or_404(db, ctx["workspace_id"], student_id)

    allowed = (
        role is Role.ADMIN
        or role is Role.TUTOR
        or (role is Role.PARENT and user.parent_id and student.parent_id == user.parent_id)
        or (role is Role.STUDENT and user.student_id == student.id)
    )
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    return student_out(student)


@router.put("/{student_id}", response_model=StudentOut)
async def update_student(
    student_id: UUID,
    student_data: StudentUpdate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    workspace_id = ctx["workspace_id"]
    student = get_student_or_404(db, workspace_id, student_id)
    changes = student_data.model_dump(exclude_unset=True)

    if changes.get("parent_id"):
        parent = db.execute(
            select(Parent.id).where(Parent.id == changes["parent_id"], Parent.workspace_id == workspace_id)
        ).first()
        if not parent:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Parent does not exist in this workspace")

    for field, value in changes.items():
        setattr(student, field, value)

    db.commit()
    db.refresh(student)
    logger.info(f"Student {student.id} updated by {ctx['user'].email}")
    return student_out(get_student_or_404(db, workspace_id, student.id))


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_student(
    student_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    workspace_id = ctx["workspace_id"]
    student = get_student_or_404(db, workspace_id, student_id)

    has_history = db.execute(
        select(Lesson.id).where(Lesson.student_id == student.id).limit(1)
    ).first() or db.execute(
        select(Invoice.id).where(Invoice.student_id == student.id).limit(1)
    ).first()
    if has_history:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Student has lessons or invoices; mark the student inactive instead"
        )

    db.delete(student)
    db.commit()
    logger.info(f"Student {student_id} deleted by {ctx['user'].email}")
