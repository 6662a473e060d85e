# numbers_erp/api/routers/users.py - Account invitations
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Dict, Any
import logging

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.tenancy import require_admin
from numbers_erp.models.user import Role
from numbers_erp.schemas.user import InviteUserIn
from numbers_erp.services.invitation_service import InvitationService, InvitationError

logger = logging.getLogger(__name__)
router = APIRouter()


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/invite-user")
async def invite_user(
    payload: InviteUserIn,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Create an account for a student, parent or tutor record and email an invitation.
    An email that already has an account is linked instead of duplicated.
    """
    if not all([payload.email, payload.role, payload.first_name, payload.last_name, payload.workspace_id]):
        return _error("Missing required fields", status.HTTP_400_BAD_REQUEST)

    try:
        role = Role(payload.role.strip().lower())
    except ValueError:
        return _error(f"Invalid role: {payload.role}", status.HTTP_400_BAD_REQUEST)

    if payload.workspace_id != ctx["workspace_id"]:
        return _error("You can only invite users to your own workspace", status.HTTP_403_FORBIDDEN)

    # Only the id matching the role is attached
    record_id = getattr(payload, role.link_field) if role.link_field else None

    try:
        return InvitationService(db).invite(
            email=payload.email,
            role=role,
            first_name=payload.first_name,
            last_name=payload.last_name,
            workspace_id=payload.workspace_id,
            record_id=record_id,
            invited_by=ctx["user"],
        )
    except InvitationError as e:
        db.rollback()
        logger.warning(f"Invitation for {payload.email} refused: {e.message}")
        return _error(e.message, e.status_code)
    except Exception as e:
        db.rollback()
        logger.error(f"Invitation for {payload.email} failed: {e}", exc_info=True)
        return _error(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
