# numbers_erp/api/routers/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Dict, Any

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.tenancy import require_admin
from numbers_erp.schemas.report import DashboardOut
from numbers_erp.services.dashboard import DashboardService

router = APIRouter()


@router.get("/", response_model=DashboardOut)
async def dashboard(
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return DashboardService(db).summary(ctx["workspace_id"])
