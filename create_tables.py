"""
create_tables.py
----------------
Creates the status-page schema in DATABASE_URL:

  organizations     tenants, addressed publicly by slug
  users             admins and members, each in exactly one organization
  services          monitored components and their current status
  incidents         incidents against a service, plus their incident_updates
  maintenances      scheduled maintenance windows per service

Existing tables are left untouched; there are no migrations.

Usage:
    python create_tables.py
"""

import asyncio

from sqlalchemy.ext.asyncio import create_async_engine

from statuspage.core.config import settings
from statuspage.models import Base  # Imports all models so metadata is populated


async def create_all_tables() -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("All tables created: organizations, users, services, incidents, incident_updates, maintenances")


if __name__ == "__main__":
    asyncio.run(create_all_tables())
