# numbers_erp/models/employee.py - Tutors and admin staff
from __future__ import annotations
import uuid
from datetime import date, datetime
from decimal import Decimal
from sqlalchemy import String, Text, Numeric, Date, DateTime, ForeignKey, JSON, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from numbers_erp.models.base import Base


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("workspaces.id"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="tutor")  # tutor|admin
    first_name: Mapped[str] = mapped_column(String(64), nullable=False)
    last_name: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(32))
    position_title: Mapped[str | None] = mapped_column(String(128))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    hire_date: Mapped[date | None] = mapped_column(Date())

    # Wage: a flat hourly rate, or the cost_per_hour of each lesson's service
    lesson_wage_type: Mapped[str] = mapped_column(String(16), nullable=False, default="service-based")
    custom_wage: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))

    subjects: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    bio: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    lessons: Mapped[list["Lesson"]] = relationship("Lesson", back_populates="tutor")

    __table_args__ = (
        CheckConstraint("type IN ('tutor','admin')", name="ck_employee_type"),
        CheckConstraint("lesson_wage_type IN ('custom','service-based')", name="ck_employee_wage_type"),
        CheckConstraint("status IN ('active','inactive')", name="ck_employee_status"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
