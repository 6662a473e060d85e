# numbers_erp/api/routers/invoices.py
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import Dict, Any, List, Optional
from uuid import UUID

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.tenancy import require_admin, require_roles
from numbers_erp.models.user import Role
from numbers_erp.models.invoice import Invoice
from numbers_erp.models.student import Student
from numbers_erp.schemas.invoice import InvoiceCreate, InvoiceUpdate, InvoiceOut, InvoiceDetail, LineItemOut
from numbers_erp.services.billing import InvoiceService

router = APIRouter()


def invoice_out(invoice: Invoice, student_name: Optional[str] = None) -> InvoiceOut:
    return InvoiceOut(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        student_id=invoice.student_id,
        student_name=student_name,
        amount_due=invoice.amount_due,
        amount_paid=invoice.amount_paid,
        due_date=invoice.due_date,
        status=invoice.status,
        description=invoice.description,
        created_at=invoice.created_at,
    )


def invoice_detail(invoice: Invoice) -> InvoiceDetail:
    summary = invoice_out(invoice, invoice.student.full_name if invoice.student else None)
    return InvoiceDetail(
        **summary.model_dump(),
        line_items=[LineItemOut.model_validate(item) for item in invoice.line_items],
    )


def visible_student_ids(db: Session, ctx: Dict[str, Any]) -> Optional[List[UUID]]:
    """None means every student in the workspace"""
    user, role = ctx["user"], ctx["role"]
    if role is Role.ADMIN:
        return None
    if role is Role.STUDENT:
        return [user.student_id] if user.student_id else []
    if not user.parent_id:
        return []
    return list(db.execute(
        select(Student.id).where(
            Student.parent_id == user.parent_id,
            Student.workspace_id == ctx["workspace_id"],
        )
    ).scalars().all())


@router.get("/", response_model=List[InvoiceOut])
async def list_invoices(
    status_filter: Optional[str] = Query(None, alias="status"),
    ctx: Dict[str, Any] = Depends(require_roles([Role.ADMIN, Role.PARENT, Role.STUDENT])),
    db: Session = Depends(get_db)
):
    """Parents see their children's invoices; students their own"""
    if status_filter == "all":
        status_filter = None
    rows = InvoiceService(db).list_invoices(
        ctx["workspace_id"],
        student_ids=visible_student_ids(db, ctx),
        status_filter=status_filter,
    )
    return [invoice_out(invoice, student_name) for invoice, student_name in rows]


@router.post("/", response_model=InvoiceDetail, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    invoice_data: InvoiceCreate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    service = InvoiceService(db)
    invoice = service.create_invoice(ctx["workspace_id"], invoice_data, ctx["user"])
    return invoice_detail(service.get_invoice(ctx["workspace_id"], invoice.id))


@router.get("/{invoice_id}", response_model=InvoiceDetail)
async def get_invoice(
    invoice_id: UUID,
    ctx: Dict[str, Any] = Depends(require_roles([Role.ADMIN, Role.PARENT, Role.STUDENT])),
    db: Session = Depends(get_db)
):
    invoice = InvoiceService(db).get_invoice(ctx["workspace_id"], invoice_id)
    allowed = visible_student_ids(db, ctx)
    if allowed is not None and invoice.student_id not in allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return invoice_detail(invoice)


@router.put("/{invoice_id}", response_model=InvoiceDetail)
async def update_invoice(
    invoice_id: UUID,
    invoice_data: InvoiceUpdate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    service = InvoiceService(db)
    service.update_invoice(ctx["workspace_id"], invoice_id, invoice_data, ctx["user"])
    return invoice_detail(service.get_invoice(ctx["workspace_id"], invoice_id))


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invoice(
    invoice_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Lessons on the invoice go back to unbilled"""
    InvoiceService(db).delete_invoice(ctx["workspace_id"], invoice_id, ctx["user"])
