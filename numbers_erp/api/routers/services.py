# numbers_erp/api/routers/services.py - Tutoring services and lesson locations
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import Dict, Any, List
from uuid import UUID
import logging

from numbers_erp.core.db import get_db
from numbers_erp.api.deps.tenancy import require_admin, require_roles
from numbers_erp.models.user import Role
from numbers_erp.models.service import Service, Location
from numbers_erp.schemas.service import ServiceCreate, ServiceUpdate, ServiceOut, LocationCreate, LocationOut

logger = logging.getLogger(__name__)
router = APIRouter()
locations_router = APIRouter()


def get_service_or_404(db: Session, workspace_id: UUID, service_id: UUID) -> Service:
    service = db.execute(
        select(Service).where(Service.id == service_id, Service.workspace_id == workspace_id)
    ).scalar_one_or_none()
    if not service:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
    return service


@router.get("/", response_model=List[ServiceOut])
async def list_services(
    ctx: Dict[str, Any] = Depends(require_roles([Role.ADMIN, Role.TUTOR])),
    db: Session = Depends(get_db)
):
    return db.execute(
        select(Service).where(Service.workspace_id == ctx["workspace_id"]).order_by(Service.name)
    ).scalars().all()


@router.post("/", response_model=ServiceOut, status_code=status.HTTP_201_CREATED)
async def create_service(
    service_data: ServiceCreate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    service = Service(workspace_id=ctx["workspace_id"], **service_data.model_dump())
    db.add(service)
    db.commit()
    db.refresh(service)
    logger.info(f"Service '{service.name}' created by {ctx['user'].email}")
    return service


@router.put("/{service_id}", response_model=ServiceOut)
async def update_service(
    service_id: UUID,
    service_data: ServiceUpdate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    service = get_service_or_404(db, ctx["workspace_id"], service_id)
    for field, value in service_data.model_dump(exclude_unset=True).items():
        setattr(service, field, value)
    db.commit()
    db.refresh(service)
    logger.info(f"Service {service.id} updated by {ctx['user'].email}")
    return service


@router.delete("/{service_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_service(
    service_id: UUID,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Lessons and line items keep their rates; their service link is cleared"""
    service = get_service_or_404(db, ctx["workspace_id"], service_id)
    db.delete(service)
    db.commit()
    logger.info(f"Service {service_id} deleted by {ctx['user'].email}")


@locations_router.get("/", response_model=List[LocationOut])
async def list_locations(
    ctx: Dict[str, Any] = Depends(require_roles([Role.ADMIN, Role.TUTOR])),
    db: Session = Depends(get_db)
):
    return db.execute(
        select(Location).where(Location.workspace_id == ctx["workspace_id"]).order_by(Location.name)
    ).scalars().all()


@locations_router.post("/", response_model=LocationOut, status_code=status.HTTP_201_CREATED)
async def create_location(
    location_data: LocationCreate,
    ctx: Dict[str, Any] = Depends(require_admin),
    db: Session = Depends(get_db)
):
    location = Location(workspace_id=ctx["workspace_id"], **location_data.model_dump())
    db.add(location)
    db.commit()
    db.refresh(location)
    logger.info(f"Location '{location.name}' created by {ctx['user'].email}")
    return location
