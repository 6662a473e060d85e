# numbers_erp/models/password_reset.py - Invitation and password reset tokens
from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import String, DateTime, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from numbers_erp.models.base import Base


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Only the HMAC of the token is stored
    token: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    purpose: Mapped[str] = mapped_column(String(16), nullable=False, default="reset")
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

    created_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)
    used_ip: Mapped[str | None] = mapped_column(String(45), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    used_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="password_reset_tokens")

    __table_args__ = (
        CheckConstraint("purpose IN ('invite','reset')", name="ck_password_reset_purpose"),
    )

    def is_valid(self) -> bool:
        """Check if token is still valid (not used and not expired)"""
        return (
            not self.used and
            self.expires_at > datetime.utcnow()
        )

    def mark_used(self, ip_address: str = None) -> None:
        self.used = True
        self.used_at = datetime.utcnow()
        if ip_address:
            self.used_ip = ip_address

    def __repr__(self):
        return f"<PasswordResetToken(id={self.id}, user_id={self.user_id}, purpose={self.purpose}, used={self.used})>"
