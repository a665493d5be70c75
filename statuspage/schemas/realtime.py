"""
schemas/realtime.py
-------------------
Frames exchanged over the real-time socket.

Every frame, in both directions, is an envelope:

    {"event": "<name>", "data": {...}}
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from statuspage.schemas.common import CamelModel


class Envelope(BaseModel):
    event: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return {} if v is None else v


class JoinOrgRequest(CamelModel):
    """join:org body. orgId takes precedence over orgSlug when both are set."""
    org_id: Optional[str] = None
    org_slug: Optional[str] = None


class LeaveOrgRequest(CamelModel):
    org_id: str


class ServiceStatusChanged(CamelModel):
    service_id: str
    service_name: str
    old_status: str
    new_status: str


class ServiceDeleted(CamelModel):
    service_id: str


class MaintenanceDeleted(CamelModel):
    maintenance_id: str
