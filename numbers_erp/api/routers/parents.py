# numbers_erp/api/routers/parents.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import select, func
from typing import Dict, Any, List
from uuid import UUID
import logging

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.tenancy import require_admin, require_roles
from numbers_erp.api.routers.students import student_out
from numbers_erp.models.user import Role
from numbers_erp.models.parent import Parent
from numbers_erp.models.student import Student
from numbers_erp.schemas.parent import ParentOut, ParentUpdate
from numbers_erp.schemas.student import StudentOut

logger = logging.getLogger(__name__)
router = APIRouter()


def parent_out(parent: Parent, student_count: int) -> ParentOut:
    return ParentOut(
        id=parent.id,
        first_name=parent.first_name,
        last_name=parent.last_name,
        email=parent.email,
        phone=parent.phone,
        current_balance=parent.current_balance,
        student_count=student_count,
        created_at=parent.created_at,
    )


def get_parent_for(db: Session, ctx: Dict[str, Any], parent_id: UUID) -> Parent:
    """Admins reach any parent in the workspace; parents only themselves"""
    if ctx["role"] is Role.PARENT and ctx["user"].parent_id != parent_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    parent = db.execute(
        select(Parent).where(Parent.id == parent_id, Parent.workspace_id == ctx["workspace_id"])
    ).scalar_one_or_none()
    if not parent:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent not found")
    return parent


def count_students(db: Session, parent_id: UUID) -> int:
    return db.execute(
        select(func.count(Student.id)).where(Student.parent_id == parent_id)
    ).scalar_one()


@router.get("/", response_model=List[ParentOut])
async def list_parents(
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    rows = db.execute(
        select(Parent, func.count(Student.id))
        .outerjoin(Student, Student.parent_id == Parent.id)
        .where(Parent.workspace_id == ctx["workspace_id"])
        .group_by(Parent.id)
        .order_by(Parent.last_name, Parent.first_name)
    ).all()
    return [parent_out(parent, student_count) for parent, student_count in rows]


@router.get("/{parent_id}", response_model=ParentOut)
async def get_parent(
    parent_id: UUID,
    ctx: Dict[str, Any] = Depends(require_roles([Role.ADMIN, Role.PARENT])),
    db: Session = Depends(get_db)
):
    parent = get_parent_for(db, ctx, parent_id)
    return parent_out(parent, count_students(db, parent.id))


@router.put("/{parent_id}", response_model=ParentOut)
async def update_parent(
    parent_id: UUID,
    parent_data: ParentUpdate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    parent = get_parent_for(db, ctx, parent_id)
    changes = parent_data.model_dump(exclude_unset=True)

    if changes.get("email"):
        changes["email"] = changes["email"].lower()
        clash = db.execute(
            select(Parent.id).where(
                Parent.workspace_id == ctx["workspace_id"],
                Parent.email == changes["email"],
                Parent.id != parent.id,
            )
        ).first()
        if clash:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Another parent already uses this email"
            )

    for field, value in changes.items():
        setattr(parent, field, value)

    db.commit()
    db.refresh(parent)
    logger.info(f"Parent {parent.id} updated by {ctx['user'].email}")
    return parent_out(parent, count_students(db, parent.id))


@router.get("/{parent_id}/students", response_model=List[StudentOut])
async def list_parent_students(
    parent_id: UUID,
    ctx: Dict[str, Any] = Depends(require_roles([Role.ADMIN, Role.PARENT])),
    db: Session = Depends(get_db)
):
    parent = get_parent_for(db, ctx, parent_id)
    students = db.execute(
        select(Student)
        .options(joinedload(Student.parent))
        .where(Student.parent_id == parent.id, Student.workspace_id == ctx["workspace_id"])
        .order_by(Student.first_name)
    ).scalars().all()
    return [student_out(student) for student in students]
