"""
api/routes/maintenance.py
-------------------------
Scheduled maintenance windows of the caller's organization.

GET    /api/maintenance       — List (by scheduled start)
POST   /api/maintenance       — Admin: schedule   → maintenance:created
PATCH  /api/maintenance/{id}  — Admin: edit       → maintenance:updated
DELETE /api/maintenance/{id}  — Admin: delete     → maintenance:deleted
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.db.session import get_db
from statuspage.dependencies import get_broadcaster, get_current_admin, get_current_user
from statuspage.models.user import User
from statuspage.realtime.broadcaster import EventBroadcaster
from statuspage.realtime.events import EventKind
from statuspage.schemas.maintenance import MaintenanceCreate, MaintenancePatch, MaintenanceRead
from statuspage.schemas.realtime import MaintenanceDeleted
from statuspage.services.maintenance_service import MaintenanceService
from statuspage.services.service_registry import ServiceRegistry

router = APIRouter(prefix="/api/maintenance", tags=["Maintenance"])

_NOT_FOUND = HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Maintenance not found")


@router.get("", response_model=list[MaintenanceRead], summary="List maintenance windows")
async def list_maintenance(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[MaintenanceRead]:
    windows = await MaintenanceService.list_maintenance(db, current_user.organization_id)
    return [MaintenanceRead.model_validate(m) for m in windows]


@router.post(
    "",
    response_model=MaintenanceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule maintenance",
)
async def create_maintenance(
    body: MaintenanceCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
    broadcaster: Annotated[EventBroadcaster, Depends(get_broadcaster)],
) -> MaintenanceRead:
    service = await ServiceRegistry.get_service(db, admin.organization_id, body.service_id)
    if service is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")

    maintenance = await MaintenanceService.create_maintenance(db, service, body)
    await db.commit()

    result = MaintenanceRead.model_validate(maintenance)
    broadcaster.publish(admin.organization_id, EventKind.maintenance_created, result)
    return result


@router.patch("/{maintenance_id}", response_model=MaintenanceRead, summary="Update maintenance")
async def update_maintenance(
    maintenance_id: str,
    body: MaintenancePatch,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
    broadcaster: Annotated[EventBroadcaster, Depends(get_broadcaster)],
) -> MaintenanceRead:
    maintenance = await MaintenanceService.get_maintenance(
        db, admin.organization_id, maintenance_id
    )
    if maintenance is None:
        raise _NOT_FOUND

    try:
        maintenance = await MaintenanceService.update_maintenance(db, maintenance, body)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    await db.commit()

    result = MaintenanceRead.model_validate(maintenance)
    broadcaster.publish(admin.organization_id, EventKind.maintenance_updated, result)
    return result


@router.delete("/{maintenance_id}", summary="Delete maintenance")
async def delete_maintenance(
    maintenance_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
    broadcaster: Annotated[EventBroadcaster, Depends(get_broadcaster)],
) -> dict:
    maintenance = await MaintenanceService.get_maintenance(
        db, admin.organization_id, maintenance_id
    )
    if maintenance is None:
        raise _NOT_FOUND

    await MaintenanceService.delete_maintenance(db, maintenance)
    await db.commit()

    broadcaster.publish(
        admin.organization_id,
        EventKind.maintenance_deleted,
        MaintenanceDeleted(maintenance_id=maintenance_id),
    )
    return {"message": "Maintenance deleted"}
