"""
api/routes/incidents.py
-----------------------
Incident management for the caller's organization.

GET   /api/incidents                 — List (optional ?status= filter)
POST  /api/incidents                 — Admin: open        → incident:created
GET   /api/incidents/{id}            — Detail with timeline
PATCH /api/incidents/{id}            — Admin: edit        → incident:updated
POST  /api/incidents/{id}/updates    — Admin: timeline    → incident:updated
                                       (+ incident:resolved when resolved)
PATCH /api/incidents/{id}/resolve    — Admin: resolve     → incident:resolved
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.db.session import get_db
from statuspage.dependencies import get_broadcaster, get_current_admin, get_current_user
from statuspage.models.incident import IncidentStatus
from statuspage.models.user import User
from statuspage.realtime.broadcaster import EventBroadcaster
from statuspage.realtime.events import EventKind
from statuspage.schemas.incident import (
    IncidentCreate,
    IncidentPatch,
    IncidentRead,
    IncidentResolve,
    IncidentTimelineResult,
    IncidentUpdateCreate,
    IncidentUpdateRead,
)
from statuspage.services.incident_service import IncidentService
from statuspage.services.service_registry import ServiceRegistry

router = APIRouter(prefix="/api/incidents", tags=["Incidents"])

_NOT_FOUND = HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Incident not found")


@router.get("", response_model=list[IncidentRead], summary="List incidents")
async def list_incidents(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    status_filter: Optional[IncidentStatus] = Query(default=None, alias="status"),
) -> list[IncidentRead]:
    incidents = await IncidentService.list_incidents(
        db, current_user.organization_id, status_filter
    )
    return [IncidentRead.model_validate(i) for i in incidents]


@router.post(
    "",
    response_model=IncidentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Open an incident",
)
async def create_incident(
    body: IncidentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
    broadcaster: Annotated[EventBroadcaster, Depends(get_broadcaster)],
) -> IncidentRead:
    service = await ServiceRegistry.get_service(db, admin.organization_id, body.service_id)
    if service is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")

    incident = await IncidentService.create_incident(db, service, body)
    await db.commit()

    result = IncidentRead.model_validate(incident)
    broadcaster.publish(admin.organization_id, EventKind.incident_created, result)
    return result


@router.get("/{incident_id}", response_model=IncidentRead, summary="Get an incident")
async def get_incident(
    incident_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> IncidentRead:
    incident = await IncidentService.get_incident(db, current_user.organization_id, incident_id)
    if incident is None:
        raise _NOT_FOUND
    return IncidentRead.model_validate(incident)


@router.patch("/{incident_id}", response_model=IncidentRead, summary="Update an incident")
async def update_incident(
    incident_id: str,
    body: IncidentPatch,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
    broadcaster: Annotated[EventBroadcaster, Depends(get_broadcaster)],
) -> IncidentRead:
    incident = await IncidentService.get_incident(db, admin.organization_id, incident_id)
    if incident is None:
        raise _NOT_FOUND

    incident = await IncidentService.update_incident(db, incident, body)
    await db.commit()

    result = IncidentRead.model_validate(incident)
    broadcaster.publish(admin.organization_id, EventKind.incident_updated, result)
    return result


@router.post(
    "/{incident_id}/updates",
    response_model=IncidentTimelineResult,
    status_code=status.HTTP_201_CREATED,
    summary="Post a timeline update",
)
async def add_incident_update(
    incident_id: str,
    body: IncidentUpdateCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
    broadcaster: Annotated[EventBroadcaster, Depends(get_broadcaster)],
) -> IncidentTimelineResult:
    incident = await IncidentService.get_incident(db, admin.organization_id, incident_id)
    if incident is None:
        raise _NOT_FOUND

    update, incident = await IncidentService.add_update(db, incident, body.message, body.status)
    await db.commit()

    result = IncidentTimelineResult(
        update=IncidentUpdateRead.model_validate(update),
        incident=IncidentRead.model_validate(incident),
    )
    broadcaster.publish(admin.organization_id, EventKind.incident_updated, result.incident)
    if incident.status == IncidentStatus.resolved.value:
        broadcaster.publish(admin.organization_id, EventKind.incident_resolved, result.incident)
    return result


@router.patch(
    "/{incident_id}/resolve",
    response_model=IncidentTimelineResult,
    summary="Resolve an incident",
)
async def resolve_incident(
    incident_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
    broadcaster: Annotated[EventBroadcaster, Depends(get_broadcaster)],
    body: Optional[IncidentResolve] = None,
) -> IncidentTimelineResult:
    incident = await IncidentService.get_incident(db, admin.organization_id, incident_id)
    if incident is None:
        raise _NOT_FOUND

    update, incident = await IncidentService.resolve(db, incident, body.message if body else None)
    await db.commit()

    result = IncidentTimelineResult(
        update=IncidentUpdateRead.model_validate(update),
        incident=IncidentRead.model_validate(incident),
    )
    broadcaster.publish(admin.organization_id, EventKind.incident_resolved, result.incident)
    return result
