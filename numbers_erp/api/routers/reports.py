# numbers_erp/api/routers/reports.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Dict, Any

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.tenancy import require_admin
from numbers_erp.schemas.report import FinancialReportOut
from numbers_erp.services.reports import ReportService

router = APIRouter()


@router.get("/financial", response_model=FinancialReportOut)
async def financial_report(
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return ReportService(db).financial_report(ctx["workspace_id"])
