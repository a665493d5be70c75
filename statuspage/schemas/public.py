"""
schemas/public.py
-----------------
Response models for the unauthenticated status page endpoints.
"""

from datetime import datetime
from typing import Optional

from statuspage.schemas.common import CamelModel
from statuspage.schemas.incident import IncidentRead


class PublicOrganization(CamelModel):
    id: str
    name: str
    slug: str


class PublicService(CamelModel):
    id: str
    name: str
    description: Optional[str]
    status: str
    updated_at: datetime


class PublicStatus(CamelModel):
    organization: PublicOrganization
    overall_status: str
    services: list[PublicService]


class PublicIncidents(CamelModel):
    active: list[IncidentRead]
    recent: list[IncidentRead]
