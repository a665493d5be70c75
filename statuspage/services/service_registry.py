"""
services/service_registry.py
----------------------------
CRUD for the services listed on an organization's status page.

Critical security invariant:
  Every query includes organization_id in the WHERE clause. A service id
  from another organization behaves exactly like a missing one.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.core.logging import get_logger
from statuspage.models.incident import Incident
from statuspage.models.service import Service
from statuspage.schemas.service import ServiceCreate, ServiceUpdate
from statuspage.services.changes import apply_changes

logger = get_logger(__name__)


class ServiceRegistry:

    @staticmethod
    async def list_services(db: AsyncSession, org_id: str) -> list[tuple[Service, int]]:
        """Services newest-first, each with its incident count."""
        result = await db.execute(
            select(Service, func.count(Incident.id))
            .outerjoin(Incident, Incident.service_id == Service.id)
            .where(Service.organization_id == org_id)
            .group_by(Service.id)
            .order_by(Service.created_at.desc())
        )
        return [(service, count) for service, count in result.all()]

    @staticmethod
    async def get_service(db: AsyncSession, org_id: str, service_id: str) -> Service | None:
        result = await db.execute(
            select(Service).where(
                Service.id == service_id, Service.organization_id == org_id
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def create_service(db: AsyncSession, org_id: str, data: ServiceCreate) -> Service:
        service = Service(
            name=data.name,
            description=data.description or None,
            organization_id=org_id,
        )
        db.add(service)
        await db.flush()
        await db.refresh(service)
        logger.info("Service created", service_id=service.id, org_id=org_id)
        return service

    @staticmethod
    async def update_service(
        db: AsyncSession, service: Service, data: ServiceUpdate
    ) -> tuple[Service, str]:
        """
        Apply the fields present in the request.
        Returns (service, previous_status) so callers can detect status changes.
        """
        previous_status = service.status
        changes = apply_changes(service, data)
        await db.flush()
        await db.refresh(service)
        logger.info(
            "Service updated",
            service_id=service.id,
            fields=changes,
            old_status=previous_status,
            new_status=service.status,
        )
        return service, previous_status

    @staticmethod
    async def delete_service(db: AsyncSession, service: Service) -> None:
        await db.delete(service)
        await db.flush()
        logger.info("Service deleted", service_id=service.id, org_id=service.organization_id)
