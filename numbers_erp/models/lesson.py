# numbers_erp/models/lesson.py
from __future__ import annotations
import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Text, Integer, Numeric, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from numbers_erp.models.base import Base


class Lesson(Base):
    __tablename__ = "lessons"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("workspaces.id"), nullable=False, index=True)
    tutor_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("employees.id"), nullable=False)
    student_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("students.id"), nullable=False)
    service_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("services.id", ondelete="SET NULL"))
    location_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("locations.id", ondelete="SET NULL"))
    invoice_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("invoices.id", ondelete="SET NULL"), index=True)

    title: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration_minutes: Mapped[int | None] = mapped_column(Integer)
    rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    status: Mapped[str] = mapped_column(String(16), nullable=False, default="scheduled")  # scheduled|completed|canceled
    billing_status: Mapped[str] = mapped_column(String(16), nullable=False, default="unbilled")  # unbilled|invoiced|paid

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    tutor: Mapped["Employee"] = relationship("Employee", back_populates="lessons")
    student: Mapped["Student"] = relationship("Student", back_populates="lessons")
    service: Mapped["Service | None"] = relationship("Service")
    location: Mapped["Location | None"] = relationship("Location")
    invoice: Mapped["Invoice | None"] = relationship("Invoice", back_populates="lessons")

    __table_args__ = (
        CheckConstraint("status IN ('scheduled','completed','canceled')", name="ck_lesson_status"),
        CheckConstraint("billing_status IN ('unbilled','invoiced','paid')", name="ck_lesson_billing_status"),
        CheckConstraint("duration_minutes IS NULL OR duration_minutes >= 0", name="ck_lesson_duration_positive"),
        Index("ix_lessons_workspace_start", "workspace_id", "start_time"),
        Index("ix_lessons_workspace_billing", "workspace_id", "billing_status"),
    )
