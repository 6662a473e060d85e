# numbers_erp/api/routers/payroll.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Dict, Any, List
from uuid import UUID

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.tenancy import require_admin
from numbers_erp.schemas.billing import TutorPayrollOut, TutorPayrollDetail
from numbers_erp.services.payroll import PayrollService

router = APIRouter()


@router.get("/", response_model=List[TutorPayrollOut])
async def list_payroll(
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return PayrollService(db).list_payroll(ctx["workspace_id"])


@router.get("/{tutor_id}", response_model=TutorPayrollDetail)
async def tutor_payroll(
    tutor_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return PayrollService(db).tutor_payroll(ctx["workspace_id"], tutor_id)
