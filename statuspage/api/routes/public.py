"""
api/routes/public.py
--------------------
Unauthenticated status page endpoints, addressed by organization slug.

GET /api/public/{slug}/status       — Services and overall status
GET /api/public/{slug}/incidents    — Active and recently resolved incidents
GET /api/public/{slug}/maintenance  — Upcoming and ongoing maintenance
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.db.session import get_db
from statuspage.models.organization import Organization
from statuspage.schemas.maintenance import MaintenanceRead
from statuspage.schemas.public import (
    PublicIncidents,
    PublicOrganization,
    PublicService,
    PublicStatus,
)
from statuspage.schemas.incident import IncidentRead
from statuspage.services.organization_service import OrganizationService
from statuspage.services.public_service import PublicStatusService, overall_status

router = APIRouter(prefix="/api/public", tags=["Public"])


async def get_public_organization(
    slug: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Organization:
    organization = await OrganizationService.get_by_slug(db, slug)
    if organization is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found"
        )
    return organization


@router.get("/{slug}/status", response_model=PublicStatus, summary="Public status")
async def public_status(
    organization: Annotated[Organization, Depends(get_public_organization)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PublicStatus:
    services = await PublicStatusService.list_services(db, organization)
    return PublicStatus(
        organization=PublicOrganization.model_validate(organization),
        overall_status=overall_status([s.status for s in services]),
        services=[PublicService.model_validate(s) for s in services],
    )


@router.get("/{slug}/incidents", response_model=PublicIncidents, summary="Public incidents")
async def public_incidents(
    organization: Annotated[Organization, Depends(get_public_organization)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PublicIncidents:
    active = await PublicStatusService.active_incidents(db, organization)
    recent = await PublicStatusService.recent_incidents(db, organization)
    return PublicIncidents(
        active=[IncidentRead.model_validate(i) for i in active],
        recent=[IncidentRead.model_validate(i) for i in recent],
    )


@router.get(
    "/{slug}/maintenance",
    response_model=list[MaintenanceRead],
    summary="Public maintenance",
)
async def public_maintenance(
    organization: Annotated[Organization, Depends(get_public_organization)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[MaintenanceRead]:
    windows = await PublicStatusService.upcoming_maintenance(db, organization)
    return [MaintenanceRead.model_validate(m) for m in windows]
