"""
api/routes/auth.py
------------------
Authentication endpoints.

POST /api/auth/signup — Create a user together with a new organization.
POST /api/auth/login  — Exchange credentials for a JWT access token.
                        Accepts OAuth2 form data (Swagger UI compatible).
GET  /api/auth/me     — Return the authenticated user and organization.
"""

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.core.config import settings
from statuspage.core.security import create_access_token
from statuspage.db.session import get_db
from statuspage.dependencies import get_current_user
from statuspage.models.organization import Organization
from statuspage.models.user import User
from statuspage.schemas.organization import OrganizationRead
from statuspage.schemas.user import MeResponse, SignupRequest, TokenResponse, UserRead
from statuspage.services.user_service import UserService

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


def token_response(user: User, organization: Organization) -> TokenResponse:
    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    token = create_access_token(
        subject=user.id,
        org_id=organization.id,
        role=user.role,
        expires_delta=expires,
    )
    return TokenResponse(
        access_token=token,
        token_type="bearer",
        expires_in=int(expires.total_seconds()),
        user=UserRead.model_validate(user),
        organization=OrganizationRead.model_validate(organization),
    )


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up and create an organization",
)
async def signup(
    body: SignupRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """
    Creates the user, an organization with a slug derived from its name,
    and makes the user the organization's admin.
    """
    try:
        user, organization = await UserService.signup(db, body)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return token_response(user, organization)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login and receive a JWT access token",
)
async def login(
    # The "username" form field carries the email address.
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    user = await UserService.authenticate(db, form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token_response(user, user.organization)


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get the currently authenticated user",
)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> MeResponse:
    return MeResponse(
        user=UserRead.model_validate(current_user),
        organization=OrganizationRead.model_validate(current_user.organization),
    )
