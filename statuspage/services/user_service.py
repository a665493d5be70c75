"""
services/user_service.py
------------------------
Business logic for signup, authentication and user management.

Signup creates the organization and its first admin in one transaction.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from statuspage.core.logging import get_logger
from statuspage.core.security import hash_password, verify_password
from statuspage.models.organization import Organization
from statuspage.models.user import User, UserRole
from statuspage.schemas.user import QuickAddRequest, SignupRequest, UserCreate
from statuspage.services.organization_service import OrganizationService

logger = get_logger(__name__)

# Initial password for quick-added accounts.
QUICK_ADD_PASSWORD = "demo123!"


class UserService:

    @staticmethod
    async def signup(db: AsyncSession, data: SignupRequest) -> tuple[User, Organization]:
        """
        Create a user, a new organization, and make the user its admin.
        Raises ValueError on duplicate email.
        """
        existing = await db.execute(select(User.id).where(User.email == data.email.lower()))
        if existing.scalar_one_or_none() is not None:
            raise ValueError(f"Email '{data.email}' is already registered")

        organization = await OrganizationService.create_organization(db, data.organization_name)
        user = User(
            name=data.name,
            email=data.email.lower(),
            hashed_password=hash_password(data.password),
            role=UserRole.admin.value,
            organization_id=organization.id,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ValueError(f"Email '{data.email}' is already registered")
        await db.refresh(user)
        logger.info("User signed up", user_id=user.id, org_id=organization.id)
        return user, organization

    @staticmethod
    async def create_user_by_admin(
        db: AsyncSession,
        data: UserCreate,
        org_id: str,
    ) -> User:
        """Admin-initiated user creation within their own organization."""
        user = User(
            name=data.name,
            email=data.email.lower(),
            hashed_password=hash_password(data.password),
            role=data.role.value,
            organization_id=org_id,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ValueError(f"Email '{data.email}' is already registered")
        await db.refresh(user)
        logger.info("Admin created user", new_user_id=user.id, role=user.role, org_id=org_id)
        return user

    @staticmethod
    async def authenticate(
        db: AsyncSession, email: str, password: str
    ) -> User | None:
        """
        Verify credentials and return the User if valid, else None.
        Email lookup is case-insensitive.
        """
        result = await db.execute(
            select(User).where(User.email == email.lower())
        )
        user = result.scalar_one_or_none()
        if user is None or not verify_password(password, user.hashed_password):
            return None
        return user

    # ── Team management ───────────────────────────────────────────────────────

    @staticmethod
    async def list_members(db: AsyncSession, org_id: str) -> list[User]:
        result = await db.execute(
            select(User)
            .where(User.organization_id == org_id)
            .order_by(User.created_at.asc(), User.email.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_member(db: AsyncSession, org_id: str, user_id: str) -> User | None:
        """Members of other organizations are invisible: None, same as missing."""
        result = await db.execute(
            select(User).where(User.id == user_id, User.organization_id == org_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def update_role(db: AsyncSession, member: User, role: str) -> User:
        """Raises ValueError unless role is 'admin' or 'member'."""
        try:
            new_role = UserRole(role)
        except ValueError:
            raise ValueError("Valid role is required (admin or member)")
        member.role = new_role.value
        await db.flush()
        await db.refresh(member)
        logger.info(
            "Member role changed",
            user_id=member.id,
            role=member.role,
            org_id=member.organization_id,
        )
        return member

    @staticmethod
    async def remove_member(db: AsyncSession, member: User, acting_user: User) -> None:
        """Raises ValueError when an admin tries to remove themselves."""
        if member.id == acting_user.id:
            raise ValueError("Cannot remove yourself")
        await db.delete(member)
        await db.flush()
        logger.info("Member removed", user_id=member.id, org_id=member.organization_id)

    @staticmethod
    async def quick_add(db: AsyncSession, data: QuickAddRequest, org_id: str) -> User:
        """
        Add a user to the organization without an invite round-trip.
        The account gets QUICK_ADD_PASSWORD; the caller hands out a token for it.
        Raises ValueError when the email is already taken.
        """
        existing = await db.execute(
            select(User.organization_id).where(User.email == data.email.lower())
        )
        owner = existing.scalar_one_or_none()
        if owner == org_id:
            raise ValueError("User is already a member of this organization")
        if owner is not None:
            raise ValueError(f"Email '{data.email}' is already registered")

        return await UserService.create_user_by_admin(
            db,
            UserCreate(
                name=data.name,
                email=data.email,
                password=QUICK_ADD_PASSWORD,
                role=data.role,
            ),
            org_id,
        )
