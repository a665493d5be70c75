"""
schemas/incident.py
-------------------
Pydantic models for incidents and their timeline updates.

Naming convention:
  IncidentCreate        → POST /api/incidents body
  IncidentPatch         → PATCH /api/incidents/{id} body
  IncidentUpdateCreate  → POST /api/incidents/{id}/updates body (timeline entry)
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from statuspage.models.incident import IncidentStatus
from statuspage.schemas.common import CamelModel
from statuspage.schemas.service import ServiceSummary


class IncidentCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    service_id: str
    status: IncidentStatus = IncidentStatus.investigating


class IncidentPatch(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[IncidentStatus] = None


class IncidentUpdateCreate(CamelModel):
    message: str = Field(..., min_length=1)
    status: Optional[IncidentStatus] = None


class IncidentResolve(CamelModel):
    message: Optional[str] = None


class IncidentUpdateRead(CamelModel):
    id: str
    message: str
    status: str
    incident_id: str
    created_at: datetime


class IncidentRead(CamelModel):
    id: str
    title: str
    description: Optional[str]
    status: str
    resolved_at: Optional[datetime]
    service_id: str
    service: ServiceSummary
    updates: list[IncidentUpdateRead] = []
    created_at: datetime
    updated_at: datetime


class IncidentTimelineResult(CamelModel):
    """Response of the add-update and resolve endpoints."""
    update: IncidentUpdateRead
    incident: IncidentRead
