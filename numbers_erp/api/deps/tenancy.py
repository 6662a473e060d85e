# numbers_erp/api/deps/tenancy.py - Workspace scoping and role checks
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Dict, Any, List

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.auth import get_current_user
from numbers_erp.models.user import Role
from numbers_erp.models.workspace import Workspace


def require_workspace(
    ctx: Dict[str, Any] = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """
    Resolve the caller's workspace from their own user row and return context dict.
    Users without a workspace are refused; there is no default workspace.
    """
    user = ctx["user"]

    if not user.workspace_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account is not linked to a workspace"
        )

    if not db.get(Workspace, user.workspace_id):
        raise HTTPException(status_code=404, detail="Workspace not found")

    return {"user": user, "workspace_id": user.workspace_id, "role": user.role_enum}


def require_roles(required_roles: List[Role]):
    """
    Create a dependency that requires one of the given roles inside a workspace.
    Usage: ctx = Depends(require_roles([Role.ADMIN, Role.TUTOR]))
    """
    def role_checker(ctx: Dict[str, Any] = Depends(require_workspace)) -> Dict[str, Any]:
        if ctx["role"] not in required_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {[r.value for r in required_roles]}"
            )
        return ctx
    return role_checker


require_admin = require_roles([Role.ADMIN])
