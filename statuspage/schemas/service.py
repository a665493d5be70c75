"""
schemas/service.py
------------------
Pydantic models for status-page services.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from statuspage.models.service import ServiceStatus
from statuspage.schemas.common import CamelModel


class ServiceCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Public API"])
    description: Optional[str] = None


class ServiceUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[ServiceStatus] = None


class ServiceSummary(CamelModel):
    """Compact form embedded in incidents and maintenance windows."""
    id: str
    name: str
    status: str


class ServiceRead(CamelModel):
    id: str
    name: str
    description: Optional[str]
    status: str
    organization_id: str
    incident_count: int = 0
    created_at: datetime
    updated_at: datetime
