# numbers_erp/api/routers/balances.py - Parent balances and invoicing from lessons
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Dict, Any, List
from uuid import UUID

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.tenancy import require_admin, require_roles
from numbers_erp.api.routers.invoices import invoice_detail
from numbers_erp.models.user import Role
from numbers_erp.schemas.billing import ParentBalanceOut
from numbers_erp.schemas.invoice import InvoiceFromLessonsIn, InvoiceDetail
from numbers_erp.schemas.lesson import LessonOut
from numbers_erp.services.balances import BalanceService
from numbers_erp.services.billing import InvoiceService

router = APIRouter()


@router.get("/", response_model=List[ParentBalanceOut])
async def list_balances(
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return BalanceService(db).list_balances(ctx["workspace_id"])


@router.get("/{parent_id}/lessons", response_model=List[LessonOut])
async def parent_lessons(
    parent_id: UUID,
    ctx: Dict[str, Any] = Depends(require_roles([Role.ADMIN, Role.PARENT])),
    db: Session = Depends(get_db)
):
    """Every lesson for the parent's children, newest first"""
    if ctx["role"] is Role.PARENT and ctx["user"].parent_id != parent_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return BalanceService(db).parent_lessons(ctx["workspace_id"], parent_id)


@router.post("/{parent_id}/invoices", response_model=InvoiceDetail, status_code=status.HTTP_201_CREATED)
async def invoice_lessons(
    parent_id: UUID,
    payload: InvoiceFromLessonsIn,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    service = InvoiceService(db)
    invoice = service.create_from_lessons(ctx["workspace_id"], parent_id, payload.lesson_ids, ctx["user"])
    return invoice_detail(service.get_invoice(ctx["workspace_id"], invoice.id))
