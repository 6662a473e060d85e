# numbers_erp/api/routers/calendar.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, Any, Optional

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.tenancy import require_roles
from numbers_erp.models.user import Role
from numbers_erp.services.calendar import CalendarService

router = APIRouter()

ANY_ROLE = [Role.ADMIN, Role.TUTOR, Role.PARENT, Role.STUDENT]


@router.get("/events")
async def calendar_events(
    tutor_id: Optional[str] = Query(None),
    student_id: Optional[str] = Query(None),
    service_id: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    ctx: Dict[str, Any] = Depends(require_roles(ANY_ROLE)),
    db: Session = Depends(get_db)
):
    """Lessons as calendar events, coloured by status"""
    return CalendarService(db).events(
        ctx["workspace_id"], ctx["user"], ctx["role"],
        tutor_id=tutor_id,
        student_id=student_id,
        service_id=service_id,
        status_filter=status_filter,
    )


@router.get("/filters")
async def calendar_filters(
    ctx: Dict[str, Any] = Depends(require_roles(ANY_ROLE)),
    db: Session = Depends(get_db)
):
    return CalendarService(db).filter_options(ctx["workspace_id"], ctx["user"], ctx["role"])
