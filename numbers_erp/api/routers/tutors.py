# numbers_erp/api/routers/tutors.py - Employees (tutors and admin staff)
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import Dict, Any, List, Optional
from uuid import UUID
import logging

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.tenancy import require_admin
from numbers_erp.models.user import Role
from numbers_erp.models.employee import Employee
from numbers_erp.models.lesson import Lesson
from numbers_erp.schemas.tutor import TutorCreate, TutorUpdate, TutorOut
from numbers_erp.services.invitation_service import InvitationService, InvitationError

logger = logging.getLogger(__name__)
router = APIRouter()


def get_employee_or_404(db: Session, workspace_id: UUID, employee_id: UUID) -> Employee:
    employee = db.execute(
        select(Employee).where(Employee.id == employee_id, Employee.workspace_id == workspace_id)
    ).scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tutor not found")
    return employee


@router.get("/", response_model=List[TutorOut])
async def list_tutors(
    type_filter: Optional[str] = Query(None, alias="type", description="tutor or admin"),
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    query = (
        select(Employee)
        .where(Employee.workspace_id == ctx["workspace_id"])
        .order_by(Employee.first_name, Employee.last_name)
    )
    if type_filter and type_filter != "all":
        query = query.where(Employee.type == type_filter)
    return db.execute(query).scalars().all()


@router.post("/", response_model=TutorOut, status_code=status.HTTP_201_CREATED)
async def create_tutor(
    tutor_data: TutorCreate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if tutor_data.lesson_wage_type == "custom" and tutor_data.custom_wage is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Custom wage is required when the wage type is custom"
        )

    employee = Employee(
        workspace_id=ctx["workspace_id"],
        **tutor_data.model_dump(exclude={"send_invitation", "email"}),
        email=tutor_data.email.lower() if tutor_data.email else None,
        status="active",
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)
    logger.info(f"{employee.type.capitalize()} {employee.full_name} created by {ctx['user'].email}")

    if tutor_data.send_invitation and employee.email and employee.type == "tutor":
        try:
            InvitationService(db).invite(
                employee.email, Role.TUTOR, employee.first_name, employee.last_name,
                ctx["workspace_id"], employee.id, invited_by=ctx["user"],
            )
        except InvitationError as e:
            db.rollback()
            logger.error(f"Could not invite tutor {employee.email}: {e.message}")

    return employee


@router.get("/{tutor_id}", response_model=TutorOut)
async def get_tutor(
    tutor_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return get_employee_or_404(db, ctx["workspace_id"], tutor_id)


@router.put("/{tutor_id}", response_model=TutorOut)
async def update_tutor(
    tutor_id: UUID,
    tutor_data: TutorUpdate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    employee = get_employee_or_404(db, ctx["workspace_id"], tutor_id)
    changes = tutor_data.model_dump(exclude_unset=True)

    wage_type = changes.get("lesson_wage_type", employee.lesson_wage_type)
    custom_wage = changes.get("custom_wage", employee.custom_wage)
    if wage_type == "custom" and custom_wage is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Custom wage is required when the wage type is custom"
        )

    for field, value in changes.items():
        setattr(employee, field, value)

    db.commit()
    db.refresh(employee)
    logger.info(f"Employee {employee.id} updated by {ctx['user'].email}")
    return employee


@router.delete("/{tutor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tutor(
    tutor_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    employee = get_employee_or_404(db, ctx["workspace_id"], tutor_id)

    if db.execute(select(Lesson.id).where(Lesson.tutor_id == employee.id).limit(1)).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Tutor has lessons; mark the tutor inactive instead"
        )

    db.delete(employee)
    db.commit()
    logger.info(f"Employee {tutor_id} deleted by {ctx['user'].email}")
