"""
services/public_service.py
--------------------------
Read-only queries behind the public status page.

These are the queries a status page re-runs every polling interval and
whenever a socket event tells it something changed, so they always read
committed ground truth and never rely on event payloads.
"""

from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.core.config import settings
from statuspage.models.incident import Incident, IncidentStatus
from statuspage.models.maintenance import Maintenance, MaintenanceStatus
from statuspage.models.organization import Organization
from statuspage.models.service import Service, ServiceStatus

# Worst first: the page headline reflects the most severe service.
STATUS_SEVERITY = [
    ServiceStatus.major_outage.value,
    ServiceStatus.partial_outage.value,
    ServiceStatus.degraded.value,
]


def overall_status(statuses: list[str]) -> str:
    for status in STATUS_SEVERITY:
        if status in statuses:
            return status
    return ServiceStatus.operational.value


class PublicStatusService:

    @staticmethod
    async def list_services(db: AsyncSession, organization: Organization) -> list[Service]:
        result = await db.execute(
            select(Service)
            .where(Service.organization_id == organization.id)
            .order_by(Service.name.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def active_incidents(db: AsyncSession, organization: Organization) -> list[Incident]:
        result = await db.execute(
            select(Incident)
            .join(Service, Incident.service_id == Service.id)
            .where(
                Service.organization_id == organization.id,
                Incident.status != IncidentStatus.resolved.value,
            )
            .order_by(Incident.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def recent_incidents(db: AsyncSession, organization: Organization) -> list[Incident]:
        """Incidents resolved within the recent window, newest resolution first."""
        since = datetime.now(timezone.utc) - timedelta(days=settings.RECENT_INCIDENT_DAYS)
        result = await db.execute(
            select(Incident)
            .join(Service, Incident.service_id == Service.id)
            .where(
                Service.organization_id == organization.id,
                Incident.status == IncidentStatus.resolved.value,
                Incident.resolved_at >= since,
            )
            .order_by(Incident.resolved_at.desc())
            .limit(settings.RECENT_INCIDENT_LIMIT)
        )
        return list(result.scalars().all())

    @staticmethod
    async def upcoming_maintenance(
        db: AsyncSession, organization: Organization
    ) -> list[Maintenance]:
        """Windows that are not completed and have not ended yet."""
        now = datetime.now(timezone.utc)
        result = await db.execute(
            select(Maintenance)
            .join(Service, Maintenance.service_id == Service.id)
            .where(
                Service.organization_id == organization.id,
                Maintenance.status != MaintenanceStatus.completed.value,
                Maintenance.scheduled_end >= now,
            )
            .order_by(Maintenance.scheduled_start.asc())
        )
        return list(result.scalars().all())
