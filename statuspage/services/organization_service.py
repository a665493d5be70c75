"""
services/organization_service.py
--------------------------------
Organization lookup and creation, plus the tenant directory the real-time
layer uses to resolve public slugs.

Service layer is responsible for:
  - Constructing queries
  - Enforcing business rules (e.g. unique slugs)
  - Returning domain objects (ORM models) to the route layer
  - Never returning HTTP responses (that's the route's job)
"""

import re
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from statuspage.core.logging import get_logger
from statuspage.models.organization import Organization

logger = get_logger(__name__)

SLUG_MAX_LENGTH = 50


def slugify(text: str) -> str:
    slug = text.lower()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")[:SLUG_MAX_LENGTH].strip("-")


class OrganizationService:

    @staticmethod
    async def create_organization(db: AsyncSession, name: str) -> Organization:
        """
        Create an organization with a slug derived from its name.
        Taken slugs get a numeric suffix: acme, acme-2, acme-3, ...
        """
        slug = await OrganizationService._unique_slug(db, slugify(name) or "org")
        organization = Organization(name=name, slug=slug)
        db.add(organization)
        await db.flush()
        await db.refresh(organization)
        logger.info("Organization created", org_id=organization.id, slug=slug)
        return organization

    @staticmethod
    async def get_by_slug(db: AsyncSession, slug: str) -> Organization | None:
        result = await db.execute(select(Organization).where(Organization.slug == slug))
        return result.scalar_one_or_none()

    @staticmethod
    async def _unique_slug(db: AsyncSession, base: str) -> str:
        result = await db.execute(
            select(Organization.slug).where(
                (Organization.slug == base) | Organization.slug.like(f"{base}-%")
            )
        )
        taken = set(result.scalars().all())
        if base not in taken:
            return base
        suffix = 2
        while f"{base}-{suffix}" in taken:
            suffix += 1
        return f"{base}-{suffix}"


class OrganizationDirectory:
    """
    Tenant directory backed by the database.

    Each lookup opens its own short-lived session: sockets outlive requests,
    so there is no request-scoped session to borrow.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def resolve_slug(self, slug: str) -> Optional[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Organization.id).where(Organization.slug == slug)
            )
            return result.scalar_one_or_none()

    async def exists(self, org_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Organization.id).where(Organization.id == org_id)
            )
            return result.scalar_one_or_none() is not None
