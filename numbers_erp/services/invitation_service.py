# numbers_erp/services/invitation_service.py - Create or link user accounts for workspace records
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from numbers_erp.core.security import password_manager
from numbers_erp.models.employee import Employee
from numbers_erp.models.parent import Parent
from numbers_erp.models.student import Student
from numbers_erp.models.user import User, Role
from numbers_erp.models.workspace import Workspace
from numbers_erp.services.auth_service import AuthService
from numbers_erp.services.email_service import EmailTemplates, email_service, password_link

logger = logging.getLogger(__name__)

LINKED_MESSAGE = "User already exists, linked to database record"
CREATED_MESSAGE = "User created and invitation sent successfully"

RECORD_MODELS = {
    Role.STUDENT: Student,
    Role.PARENT: Parent,
    Role.TUTOR: Employee,
}


class InvitationError(Exception):
    """Invitation refused; carries the HTTP status to report"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def user_payload(user: User) -> Dict[str, Any]:
    return {
        "id": str(user.id),
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role,
        "workspace_id": str(user.workspace_id) if user.workspace_id else None,
        "student_id": str(user.student_id) if user.student_id else None,
        "parent_id": str(user.parent_id) if user.parent_id else None,
        "employee_id": str(user.employee_id) if user.employee_id else None,
    }


class InvitationService:
    def __init__(self, db: Session):
        self.db = db
        self.auth = AuthService(db)

    def _check_record(self, role: Role, workspace_id: UUID, record_id: Optional[UUID]) -> None:
        model = RECORD_MODELS.get(role)
        if model is None or record_id is None:
            return
        found = self.db.execute(
            select(model.id).where(model.id == record_id, model.workspace_id == workspace_id)
        ).first()
        if not found:
            raise InvitationError(f"{role.value.capitalize()} record not found in this workspace", 404)

    def invite(
        self,
        email: str,
        role: Role,
        first_name: str,
        last_name: str,
        workspace_id: UUID,
        record_id: Optional[UUID] = None,
        invited_by: Optional[User] = None,
    ) -> Dict[str, Any]:
        """
        Link an existing account to the workspace record, or create one and email an invitation.

        record_id is the student, parent or employee id matching the role; it is
        ignored for admins.

        Returns:
            {"success": True, "user": {...}, "message": ...}
        """
        email = email.lower().strip()
        workspace = self.db.get(Workspace, workspace_id)
        if not workspace:
            raise InvitationError("Workspace not found", 404)
        self._check_record(role, workspace_id, record_id)

        user = self.auth.get_user_by_email(email)
        if user:
            if user.workspace_id is not None and user.workspace_id != workspace_id:
                raise InvitationError("User belongs to another workspace", 409)
            user.role = role.value
            user.workspace_id = workspace_id
            user.link_record(role, record_id)
            self.db.commit()

            logger.info(f"Existing user {email} linked as {role.value} in workspace {workspace_id}")
            return {"success": True, "user": user_payload(user), "message": LINKED_MESSAGE}

        user = User(
            email=email,
            full_name=f"{first_name.strip()} {last_name.strip()}",
            password_hash=password_manager.unusable_password(),
            role=role.value,
            workspace_id=workspace_id,
            is_active=True,
            is_verified=False,
        )
        user.link_record(role, record_id)
        self.db.add(user)
        self.db.flush()

        plain_token = self.auth.issue_token(user, "invite")
        self.db.commit()

        text, html = EmailTemplates.invitation(
            name=user.full_name,
            workspace=workspace.name,
            role=role.value,
            link=password_link(plain_token, email),
        )
        if not email_service.send_email(email, f"You're invited to {workspace.name}", text, html):
            # The account stays usable; a password reset re-sends a link
            logger.error(f"Invitation email to {email} could not be sent")

        inviter = invited_by.email if invited_by else "system"
        logger.info(f"User {email} invited as {role.value} by {inviter}")
        return {"success": True, "user": user_payload(user), "message": CREATED_MESSAGE}
