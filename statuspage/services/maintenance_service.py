"""
services/maintenance_service.py
-------------------------------
Scheduled maintenance windows, scoped to the organization through their
service.
"""

from datetime import timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.core.logging import get_logger
from statuspage.models.maintenance import Maintenance
from statuspage.models.service import Service
from statuspage.schemas.maintenance import MaintenanceCreate, MaintenancePatch
from statuspage.services.changes import apply_changes

logger = get_logger(__name__)


class MaintenanceService:

    @staticmethod
    async def list_maintenance(db: AsyncSession, org_id: str) -> list[Maintenance]:
        result = await db.execute(
            select(Maintenance)
            .join(Service, Maintenance.service_id == Service.id)
            .where(Service.organization_id == org_id)
            .order_by(Maintenance.scheduled_start.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_maintenance(
        db: AsyncSession, org_id: str, maintenance_id: str
    ) -> Maintenance | None:
        result = await db.execute(
            select(Maintenance)
            .join(Service, Maintenance.service_id == Service.id)
            .where(Maintenance.id == maintenance_id, Service.organization_id == org_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def create_maintenance(
        db: AsyncSession, service: Service, data: MaintenanceCreate
    ) -> Maintenance:
        maintenance = Maintenance(
            title=data.title,
            description=data.description or None,
            service_id=service.id,
            scheduled_start=data.scheduled_start,
            scheduled_end=data.scheduled_end,
        )
        db.add(maintenance)
        await db.flush()
        logger.info("Maintenance scheduled", maintenance_id=maintenance.id, service_id=service.id)
        return await MaintenanceService._reload(db, maintenance.id)

    @staticmethod
    async def update_maintenance(
        db: AsyncSession, maintenance: Maintenance, data: MaintenancePatch
    ) -> Maintenance:
        """Raises ValueError when the resulting window ends before it starts."""
        start = data.scheduled_start or maintenance.scheduled_start
        end = data.scheduled_end or maintenance.scheduled_end
        if _as_comparable(end) <= _as_comparable(start):
            raise ValueError("scheduledEnd must be after scheduledStart")
        changes = apply_changes(maintenance, data)
        await db.flush()
        logger.info("Maintenance updated", maintenance_id=maintenance.id, fields=changes)
        return await MaintenanceService._reload(db, maintenance.id)

    @staticmethod
    async def delete_maintenance(db: AsyncSession, maintenance: Maintenance) -> None:
        await db.delete(maintenance)
        await db.flush()
        logger.info("Maintenance deleted", maintenance_id=maintenance.id)

    @staticmethod
    async def _reload(db: AsyncSession, maintenance_id: str) -> Maintenance:
        result = await db.execute(
            select(Maintenance)
            .where(Maintenance.id == maintenance_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()


def _as_comparable(value):
    # SQLite hands back naive datetimes; requests carry aware ones.
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
