# numbers_erp/api/routers/navigation.py
from fastapi import APIRouter, Depends
from typing import Dict, Any

from numbers_erp.api.deps.tenancy import require_workspace
from numbers_erp.services.navigation import navigation_for

router = APIRouter()


@router.get("/")
async def get_navigation(ctx: Dict[str, Any] = Depends(require_workspace)):
    """Navigation items and breadcrumb trails for the caller's role"""
    return navigation_for(ctx["role"])
