"""
schemas/maintenance.py
----------------------
Pydantic models for scheduled maintenance windows.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from statuspage.models.maintenance import MaintenanceStatus
from statuspage.schemas.common import CamelModel


class MaintenanceCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    service_id: str
    scheduled_start: datetime
    scheduled_end: datetime

    @model_validator(mode="after")
    def check_window(self) -> "MaintenanceCreate":
        if self.scheduled_end <= self.scheduled_start:
            raise ValueError("scheduledEnd must be after scheduledStart")
        return self


class MaintenancePatch(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[MaintenanceStatus] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None


class MaintenanceServiceRef(CamelModel):
    id: str
    name: str


class MaintenanceRead(CamelModel):
    id: str
    title: str
    description: Optional[str]
    status: str
    scheduled_start: datetime
    scheduled_end: datetime
    service_id: str
    service: MaintenanceServiceRef
    created_at: datetime
    updated_at: datetime
