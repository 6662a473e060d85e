# numbers_erp/models/user.py - Application user linked to a workspace and a domain record
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from numbers_erp.models.base import Base
import enum


class Role(str, enum.Enum):
    """User roles; each role carries its own navigation set"""
    ADMIN = "admin"      # Runs the workspace
    TUTOR = "tutor"      # Teaches lessons
    PARENT = "parent"    # Pays invoices
    STUDENT = "student"  # Attends lessons

    @classmethod
    def parse(cls, value: str | None) -> "Role":
        """Unknown or missing roles fall back to the least privileged one"""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.STUDENT

    @property
    def nav_items(self) -> list[dict]:
        from numbers_erp.services.navigation import NAV_ITEMS
        return NAV_ITEMS[self]

    @property
    def link_field(self) -> str | None:
        """Name of the user column that points at this role's domain record"""
        return {
            Role.STUDENT: "student_id",
            Role.PARENT: "parent_id",
            Role.TUTOR: "employee_id",
        }.get(self)


class User(Base):
    __tablename__ = "users"

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Basic info
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[str] = mapped_column(String(16), nullable=False, default=Role.STUDENT.value)

    # Tenancy and the domain record this account stands for
    workspace_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("workspaces.id"), index=True)
    student_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="SET NULL"))
    parent_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("parents.id", ondelete="SET NULL"))
    employee_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("employees.id", ondelete="SET NULL"))

    # Account status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Relationships
    password_reset_tokens: Mapped[list["PasswordResetToken"]] = relationship(
        "PasswordResetToken",
        back_populates="user",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("role IN ('admin','tutor','parent','student')", name="ck_user_role"),
    )

    @property
    def role_enum(self) -> Role:
        return Role.parse(self.role)

    def has_any_role(self, roles: list[Role]) -> bool:
        return self.role_enum in roles

    def is_admin(self) -> bool:
        return self.role_enum is Role.ADMIN

    def link_record(self, role: Role, record_id: uuid.UUID | None) -> None:
        """Point the account at its student, parent or employee row; other links are left alone"""
        field = role.link_field
        if field and record_id:
            setattr(self, field, record_id)

    def get_active_reset_tokens_count(self) -> int:
        return sum(1 for token in self.password_reset_tokens if token.is_valid())

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
