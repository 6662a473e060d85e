# numbers_erp/services/billing.py - Lesson amounts and invoice management
import logging
import time
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.orm import Session, joinedload

from numbers_erp.core.config import settings
from numbers_erp.models.invoice import Invoice, InvoiceLineItem
from numbers_erp.models.lesson import Lesson
from numbers_erp.models.parent import Parent
from numbers_erp.models.student import Student
from numbers_erp.models.user import User
from numbers_erp.schemas.invoice import InvoiceCreate, InvoiceUpdate

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def effective_minutes(duration_minutes: Optional[int]) -> int:
    """Lessons saved without a duration count as a default-length lesson"""
    if duration_minutes is None:
        return settings.DEFAULT_LESSON_MINUTES
    return duration_minutes


def calculate_lesson_amount(rate, duration_minutes: Optional[int]) -> Decimal:
    """rate * duration_minutes / 60, rounded half-up to cents"""
    amount = to_decimal(rate) * Decimal(effective_minutes(duration_minutes)) / Decimal(60)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def lesson_rate(lesson: Lesson) -> Decimal:
    """The lesson's own rate, else its service's billing rate"""
    if lesson.rate is not None:
        return to_decimal(lesson.rate)
    if lesson.service is not None:
        return to_decimal(lesson.service.rate_per_hour)
    return ZERO


def lesson_amount(lesson: Lesson) -> Decimal:
    return calculate_lesson_amount(lesson_rate(lesson), lesson.duration_minutes)


class InvoiceService:
    """Invoice CRUD plus invoice generation from unbilled lessons"""

    def __init__(self, db: Session):
        self.db = db

    def _next_invoice_number(self, workspace_id: UUID) -> str:
        millis = int(time.time() * 1000)
        while self.db.execute(
            select(Invoice.id).where(
                Invoice.workspace_id == workspace_id,
                Invoice.invoice_number == f"INV-{millis}"
            )
        ).first():
            millis += 1
        return f"INV-{millis}"

    def _get_student(self, workspace_id: UUID, student_id: UUID) -> Student:
        student = self.db.execute(
            select(Student).where(Student.id == student_id, Student.workspace_id == workspace_id)
        ).scalar_one_or_none()
        if not student:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
        return student

    def list_invoices(
        self,
        workspace_id: UUID,
        student_ids: Optional[Sequence[UUID]] = None,
        status_filter: Optional[str] = None,
    ) -> List[Tuple[Invoice, str]]:
        """Newest first, paired with the student's name"""
        query = (
            select(Invoice, Student.first_name, Student.last_name)
            .join(Student, Student.id == Invoice.student_id)
            .where(Invoice.workspace_id == workspace_id)
            .order_by(Invoice.created_at.desc())
        )
        if student_ids is not None:
            query = query.where(Invoice.student_id.in_(student_ids))
        if status_filter:
            query = query.where(Invoice.status == status_filter)

        return [
            (invoice, f"{first} {last}")
            for invoice, first, last in self.db.execute(query).all()
        ]

    def get_invoice(self, workspace_id: UUID, invoice_id: UUID) -> Invoice:
        invoice = self.db.execute(
            select(Invoice)
            .options(joinedload(Invoice.line_items), joinedload(Invoice.student))
            .where(Invoice.id == invoice_id, Invoice.workspace_id == workspace_id)
        ).unique().scalar_one_or_none()
        if not invoice:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
        return invoice

    def create_invoice(self, workspace_id: UUID, data: InvoiceCreate, user: User) -> Invoice:
        self._get_student(workspace_id, data.student_id)

        invoice = Invoice(
            workspace_id=workspace_id,
            student_id=data.student_id,
            invoice_number=self._next_invoice_number(workspace_id),
            amount_due=data.amount_due,
            amount_paid=data.amount_paid,
            due_date=data.due_date or date.today() + timedelta(days=settings.INVOICE_DUE_DAYS),
            status=data.status,
            description=data.description,
        )
        self.db.add(invoice)
        self.db.commit()
        self.db.refresh(invoice)

        logger.info(f"Invoice {invoice.invoice_number} created by {user.email}")
        return invoice

    def update_invoice(self, workspace_id: UUID, invoice_id: UUID, data: InvoiceUpdate, user: User) -> Invoice:
        invoice = self.get_invoice(workspace_id, invoice_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(invoice, field, value)

        self.db.commit()
        self.db.refresh(invoice)

        logger.info(f"Invoice {invoice.invoice_number} updated by {user.email}")
        return invoice

    def delete_invoice(self, workspace_id: UUID, invoice_id: UUID, user: User) -> None:
        """Delete the invoice and return its lessons to unbilled"""
        invoice = self.get_invoice(workspace_id, invoice_id)
        number = invoice.invoice_number

        try:
            self.db.execute(
                update(Lesson)
                .where(Lesson.invoice_id == invoice.id, Lesson.workspace_id == workspace_id)
                .values(billing_status="unbilled", invoice_id=None)
                .execution_options(synchronize_session="fetch")
            )
            self.db.delete(invoice)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete invoice {number}: {e}", exc_info=True)
            raise

        logger.info(f"Invoice {number} deleted by {user.email}")

    def create_from_lessons(
        self,
        workspace_id: UUID,
        parent_id: UUID,
        lesson_ids: Sequence[UUID],
        user: User,
    ) -> Invoice:
        """
        Bill a parent's unbilled lessons in one transaction.

        Inserts the invoice and one line item per lesson, then marks every
        lesson invoiced. Nothing is written unless all steps succeed.

        Raises:
            HTTPException 400: empty selection
            HTTPException 404: parent missing, or a lesson is not one of the parent's
            HTTPException 409: a lesson has already been billed
        """
        # Preserve selection order; the first lesson's student owns the invoice
        selected = list(dict.fromkeys(lesson_ids))
        if not selected:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Select at least one lesson to invoice"
            )

        parent = self.db.execute(
            select(Parent).where(Parent.id == parent_id, Parent.workspace_id == workspace_id)
        ).scalar_one_or_none()
        if not parent:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent not found")

        try:
            lessons = self.db.execute(
                select(Lesson)
                .join(Student, Student.id == Lesson.student_id)
                .options(joinedload(Lesson.student), joinedload(Lesson.service))
                .where(
                    Lesson.id.in_(selected),
                    Lesson.workspace_id == workspace_id,
                    Student.parent_id == parent.id,
                )
                .with_for_update(of=Lesson)
            ).unique().scalars().all()

            by_id = {lesson.id: lesson for lesson in lessons}
            missing = [str(lesson_id) for lesson_id in selected if lesson_id not in by_id]
            if missing:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"Lessons not found for this parent: {', '.join(missing)}"
                )

            already_billed = [str(lesson.id) for lesson in lessons if lesson.billing_status != "unbilled"]
            if already_billed:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail=f"Lessons already invoiced: {', '.join(already_billed)}"
                )

            ordered = [by_id[lesson_id] for lesson_id in selected]
            amounts = [lesson_amount(lesson) for lesson in ordered]

            invoice = Invoice(
                workspace_id=workspace_id,
                student_id=ordered[0].student_id,
                invoice_number=self._next_invoice_number(workspace_id),
                amount_due=sum(amounts, ZERO),
                amount_paid=ZERO,
                due_date=date.today() + timedelta(days=settings.INVOICE_DUE_DAYS),
                status="pending",
                description=f"Lessons for {parent.full_name}",
            )
            self.db.add(invoice)
            self.db.flush()

            for lesson, amount in zip(ordered, amounts):
                service_name = lesson.service.name if lesson.service else "Lesson"
                self.db.add(InvoiceLineItem(
                    workspace_id=workspace_id,
                    invoice_id=invoice.id,
                    lesson_id=lesson.id,
                    service_id=lesson.service_id,
                    description=f"{service_name} - {lesson.student.full_name}",
                    rate=lesson_rate(lesson),
                    duration_minutes=effective_minutes(lesson.duration_minutes),
                    subtotal=amount,
                ))
                lesson.billing_status = "invoiced"
                lesson.invoice_id = invoice.id

            self.db.commit()

        except HTTPException:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Invoice creation failed for parent {parent_id}: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create invoice; no changes were saved"
            )

        self.db.refresh(invoice)
        logger.info(
            f"Invoice {invoice.invoice_number} created by {user.email} "
            f"for {len(ordered)} lessons totalling {invoice.amount_due}"
        )
        return invoice
