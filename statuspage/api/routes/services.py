"""
api/routes/services.py
----------------------
Status-page services of the caller's organization.

GET    /api/services       — List services (newest first, with incident count)
POST   /api/services       — Admin: create          → service:created
PATCH  /api/services/{id}  — Admin: edit            → service:updated
                             (+ service:status_changed when the status moved)
DELETE /api/services/{id}  — Admin: delete          → service:deleted

Every mutation commits before it publishes, so clients refetching on the
event always see the new state.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.db.session import get_db
from statuspage.dependencies import get_broadcaster, get_current_admin, get_current_user
from statuspage.models.user import User
from statuspage.realtime.broadcaster import EventBroadcaster
from statuspage.realtime.events import EventKind
from statuspage.schemas.realtime import ServiceDeleted, ServiceStatusChanged
from statuspage.schemas.service import ServiceCreate, ServiceRead, ServiceUpdate
from statuspage.services.service_registry import ServiceRegistry

router = APIRouter(prefix="/api/services", tags=["Services"])

_NOT_FOUND = HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")


@router.get("", response_model=list[ServiceRead], summary="List services")
async def list_services(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[ServiceRead]:
    rows = await ServiceRegistry.list_services(db, current_user.organization_id)
    return [
        ServiceRead.model_validate(service).model_copy(update={"incident_count": count})
        for service, count in rows
    ]


@router.post(
    "",
    response_model=ServiceRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a service",
)
async def create_service(
    body: ServiceCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
    broadcaster: Annotated[EventBroadcaster, Depends(get_broadcaster)],
) -> ServiceRead:
    service = await ServiceRegistry.create_service(db, admin.organization_id, body)
    await db.commit()

    result = ServiceRead.model_validate(service)
    broadcaster.publish(admin.organization_id, EventKind.service_created, result)
    return result


@router.patch("/{service_id}", response_model=ServiceRead, summary="Update a service")
async def update_service(
    service_id: str,
    body: ServiceUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
    broadcaster: Annotated[EventBroadcaster, Depends(get_broadcaster)],
) -> ServiceRead:
    service = await ServiceRegistry.get_service(db, admin.organization_id, service_id)
    if service is None:
        raise _NOT_FOUND

    service, old_status = await ServiceRegistry.update_service(db, service, body)
    await db.commit()

    result = ServiceRead.model_validate(service)
    broadcaster.publish(admin.organization_id, EventKind.service_updated, result)
    if service.status != old_status:
        broadcaster.publish(
            admin.organization_id,
            EventKind.service_status_changed,
            ServiceStatusChanged(
                service_id=service.id,
                service_name=service.name,
                old_status=old_status,
                new_status=service.status,
            ),
        )
    return result


@router.delete("/{service_id}", summary="Delete a service")
async def delete_service(
    service_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
    broadcaster: Annotated[EventBroadcaster, Depends(get_broadcaster)],
) -> dict:
    service = await ServiceRegistry.get_service(db, admin.organization_id, service_id)
    if service is None:
        raise _NOT_FOUND

    await ServiceRegistry.delete_service(db, service)
    await db.commit()

    broadcaster.publish(
        admin.organization_id, EventKind.service_deleted, ServiceDeleted(service_id=service_id)
    )
    return {"message": "Service deleted"}
