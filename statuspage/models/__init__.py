"""
models/__init__.py
------------------
Re-export all models so table creation (and Alembic's env.py) can discover
every table via a single import:

    from statuspage.models import Base
"""

from statuspage.db.base import Base
from statuspage.models.organization import Organization
from statuspage.models.user import User, UserRole
from statuspage.models.service import Service, ServiceStatus
from statuspage.models.incident import Incident, IncidentStatus, IncidentUpdate
from statuspage.models.maintenance import Maintenance, MaintenanceStatus

__all__ = [
    "Base",
    "Organization",
    "User",
    "UserRole",
    "Service",
    "ServiceStatus",
    "Incident",
    "IncidentStatus",
    "IncidentUpdate",
    "Maintenance",
    "MaintenanceStatus",
]
