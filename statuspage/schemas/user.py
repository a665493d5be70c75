"""
schemas/user.py
---------------
Pydantic models for signup, login, user management and responses.

Security note:
  - hashed_password is NEVER included in any response schema.
"""

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from statuspage.models.user import UserRole
from statuspage.schemas.common import CamelModel
from statuspage.schemas.organization import OrganizationRead


class SignupRequest(CamelModel):
    """Creates a user together with a brand-new organization they administer."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    organization_name: str = Field(
        ...,
        min_length=2,
        max_length=255,
        examples=["Acme Corp"],
    )

    @field_validator("name", "organization_name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class UserCreate(CamelModel):
    """Used by an admin to add a user to their organization."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    role: UserRole = UserRole.member


class UserRead(CamelModel):
    id: str
    name: str
    email: str
    role: str
    organization_id: str
    created_at: datetime


class MeResponse(CamelModel):
    user: UserRead
    organization: OrganizationRead


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserRead
    organization: OrganizationRead


class RoleUpdate(CamelModel):
    # Checked by UserService.update_role.
    role: str


class QuickAddRequest(CamelModel):
    """Adds a user directly; the response carries a token for the new account."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    role: UserRole = UserRole.member

    @field_validator("name")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()
