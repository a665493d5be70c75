"""
services/incident_service.py
----------------------------
Incident lifecycle: open, edit, post timeline updates, resolve.

Incidents carry no organization_id of their own; they are scoped through
their service. Every query joins Service and filters on organization_id.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.core.logging import get_logger
from statuspage.models.incident import Incident, IncidentStatus, IncidentUpdate
from statuspage.models.service import Service
from statuspage.schemas.incident import IncidentCreate, IncidentPatch
from statuspage.services.changes import apply_changes

logger = get_logger(__name__)

RESOLVED_MESSAGE = "This incident has been resolved."


def _sync_resolution(incident: Incident) -> None:
    # resolved_at marks the first time the incident reached resolved; reopening clears it.
    if incident.status != IncidentStatus.resolved.value:
        incident.resolved_at = None
    elif incident.resolved_at is None:
        incident.resolved_at = datetime.now(timezone.utc)


class IncidentService:

    @staticmethod
    async def list_incidents(
        db: AsyncSession, org_id: str, status: Optional[IncidentStatus] = None
    ) -> list[Incident]:
        query = (
            select(Incident)
            .join(Service, Incident.service_id == Service.id)
            .where(Service.organization_id == org_id)
            .order_by(Incident.created_at.desc())
        )
        if status is not None:
            query = query.where(Incident.status == status.value)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_incident(db: AsyncSession, org_id: str, incident_id: str) -> Incident | None:
        result = await db.execute(
            select(Incident)
            .join(Service, Incident.service_id == Service.id)
            .where(Incident.id == incident_id, Service.organization_id == org_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def create_incident(
        db: AsyncSession, service: Service, data: IncidentCreate
    ) -> Incident:
        """Open an incident and record its first timeline entry."""
        incident = Incident(
            title=data.title,
            description=data.description or None,
            status=data.status.value,
            service_id=service.id,
        )
        _sync_resolution(incident)
        db.add(incident)
        await db.flush()

        db.add(
            IncidentUpdate(
                message=data.description or f'Incident "{data.title}" created',
                status=incident.status,
                incident_id=incident.id,
            )
        )
        await db.flush()
        logger.info("Incident created", incident_id=incident.id, service_id=service.id)
        return await IncidentService._reload(db, incident.id)

    @staticmethod
    async def update_incident(
        db: AsyncSession, incident: Incident, data: IncidentPatch
    ) -> Incident:
        changes = apply_changes(incident, data)
        _sync_resolution(incident)
        await db.flush()
        logger.info("Incident updated", incident_id=incident.id, fields=changes)
        return await IncidentService._reload(db, incident.id)

    @staticmethod
    async def add_update(
        db: AsyncSession,
        incident: Incident,
        message: str,
        status: Optional[IncidentStatus] = None,
    ) -> tuple[IncidentUpdate, Incident]:
        """
        Append a timeline entry and move the incident to its status.
        Without an explicit status the incident keeps its current one.
        """
        new_status = status.value if status is not None else incident.status
        update = IncidentUpdate(message=message, status=new_status, incident_id=incident.id)
        db.add(update)
        incident.status = new_status
        _sync_resolution(incident)
        await db.flush()
        await db.refresh(update)
        logger.info("Incident update posted", incident_id=incident.id, status=new_status)
        return update, await IncidentService._reload(db, incident.id)

    @staticmethod
    async def resolve(
        db: AsyncSession, incident: Incident, message: Optional[str] = None
    ) -> tuple[IncidentUpdate, Incident]:
        return await IncidentService.add_update(
            db, incident, message or RESOLVED_MESSAGE, IncidentStatus.resolved
        )

    @staticmethod
    async def _reload(db: AsyncSession, incident_id: str) -> Incident:
        # Server-side timestamps and the updates collection are stale after a
        # flush; re-select so serialisation never triggers a lazy load.
        result = await db.execute(
            select(Incident)
            .where(Incident.id == incident_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
