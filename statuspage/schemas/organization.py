"""
schemas/organization.py
-----------------------
Pydantic response models for Organization.
"""

from datetime import datetime

from statuspage.schemas.common import CamelModel


class OrganizationRead(CamelModel):
    id: str
    name: str
    slug: str
    created_at: datetime
