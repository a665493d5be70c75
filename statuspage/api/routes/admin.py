"""
api/routes/admin.py
-------------------
User and team management within the caller's organization.

POST   /api/admin/users               — Admin creates a new user (any role)
GET    /api/admin/members             — List the organization's members
PATCH  /api/admin/members/{id}/role   — Admin: set a member's role (admin | member)
DELETE /api/admin/members/{id}        — Admin: remove a member (never yourself)
POST   /api/admin/quick-add           — Admin: add a user and get a token for them

Members of other organizations answer 404, exactly like unknown ids.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.api.routes.auth import token_response
from statuspage.db.session import get_db
from statuspage.dependencies import get_current_admin, get_current_user
from statuspage.models.user import User
from statuspage.schemas.user import (
    QuickAddRequest,
    RoleUpdate,
    TokenResponse,
    UserCreate,
    UserRead,
)
from statuspage.services.user_service import UserService

router = APIRouter(prefix="/api/admin", tags=["Admin"])

_MEMBER_NOT_FOUND = HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")


@router.post(
    "/users",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Admin: create a new user in the current organization",
)
async def admin_create_user(
    body: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
) -> UserRead:
    """
    The organization is taken from the admin's JWT; admins cannot create
    users in other organizations.
    """
    try:
        user = await UserService.create_user_by_admin(
            db=db,
            data=body,
            org_id=admin.organization_id,
        )
        return UserRead.model_validate(user)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


# ── Team ──────────────────────────────────────────────────────────────────────

@router.get("/members", response_model=list[UserRead], summary="List organization members")
async def list_members(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[UserRead]:
    members = await UserService.list_members(db, current_user.organization_id)
    return [UserRead.model_validate(m) for m in members]


@router.patch(
    "/members/{user_id}/role",
    response_model=UserRead,
    summary="Admin: change a member's role",
)
async def update_member_role(
    user_id: str,
    body: RoleUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
) -> UserRead:
    member = await UserService.get_member(db, admin.organization_id, user_id)
    if member is None:
        raise _MEMBER_NOT_FOUND
    try:
        member = await UserService.update_role(db, member, body.role)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return UserRead.model_validate(member)


@router.delete(
    "/members/{user_id}",
    summary="Admin: remove a member from the organization",
)
async def remove_member(
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
) -> dict:
    member = await UserService.get_member(db, admin.organization_id, user_id)
    if member is None:
        raise _MEMBER_NOT_FOUND
    try:
        await UserService.remove_member(db, member, admin)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return {"message": "Member removed"}


@router.post(
    "/quick-add",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Admin: add a user directly and return a token for them",
)
async def quick_add_member(
    body: QuickAddRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[User, Depends(get_current_admin)],
) -> TokenResponse:
    """
    The new account gets a fixed initial password; the returned token lets
    the admin switch to it straight away.
    """
    try:
        user = await UserService.quick_add(db, body, admin.organization_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return token_response(user, admin.organization)
