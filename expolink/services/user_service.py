"""
User helpers shared by the auth, profile and social-login flows.

Role assignment, badge code allocation, lookups.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from expolink.core.security import generate_badge_code, hash_password
from expolink.models.company import Company
from expolink.models.role import Role, RoleSlug
from expolink.models.user import User

logger = logging.getLogger(__name__)

ROLE_NAMES = {
    RoleSlug.admin: "Administrator",
    RoleSlug.exhibitor: "Exhibitor",
    RoleSlug.visitor: "Visitor",
}


class UserService:
    """Lookups and mutations on User rows."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Lookups
    # -----------------------------------------------------------------------

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_or_404(self, user_id: UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "USER_NOT_FOUND", "message": "User not found"},
            )
        return user

    async def ensure_company_exists(self, company_id: UUID) -> Company:
        """422 when an exhibitor points at a company that does not exist."""
        company = await self.db.get(Company, company_id)
        if company is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={
                    "code": "INVALID_COMPANY",
                    "field": "company_id",
                    "message": "The selected company id is invalid.",
                },
            )
        return company

    # -----------------------------------------------------------------------
    # Badge codes
    # -----------------------------------------------------------------------

    async def allocate_badge_code(self, role: str, exclude_user_id: UUID | None = None) -> str:
        """Draw badge codes until one is not used by another user."""
        while True:
            code = generate_badge_code(role)
            stmt = select(User.id).where(User.badge_code == code)
            if exclude_user_id is not None:
                stmt = stmt.where(User.id != exclude_user_id)
            if (await self.db.execute(stmt)).first() is None:
                return code
            logger.debug("Badge code collision on %s, drawing again", code)

    # -----------------------------------------------------------------------
    # Roles
    # -----------------------------------------------------------------------

    async def get_role(self, slug: str) -> Role | None:
        result = await self.db.execute(select(Role).where(Role.slug == slug))
        return result.scalar_one_or_none()

    async def resolve_role(self, slug: str) -> Role | None:
        """The requested role, or the visitor role when it is not seeded."""
        role = await self.get_role(slug)
        if role is None and slug != RoleSlug.visitor.value:
            logger.warning("Role %r missing, falling back to visitor", slug)
            role = await self.get_role(RoleSlug.visitor.value)
        return role

    async def sync_role(self, user: User, slug: str) -> None:
        """Replace every role of the user with the given one (if it exists)."""
        role = await self.get_role(slug)
        if role is None:
            logger.warning("Role %r missing, keeping roles of user %s", slug, user.id)
            return
        user.roles = [role]

    # -----------------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------------

    async def reload(self, user: User) -> User:
        """Flush pending changes and reload company + roles for serialization."""
        await self.db.flush()
        await self.db.refresh(user, attribute_names=["company", "roles"])
        return user

    # -----------------------------------------------------------------------
    # Provisioning (CLI)
    # -----------------------------------------------------------------------

    async def seed_roles(self) -> list[Role]:
        """Create the admin / exhibitor / visitor roles that are missing."""
        created = []
        for slug in RoleSlug:
            if await self.get_role(slug.value) is None:
                role = Role(slug=slug.value, name=ROLE_NAMES[slug])
                self.db.add(role)
                created.append(role)
        await self.db.flush()
        return created

    async def create_admin(self, email: str, password: str, name: str) -> User:
        """Create an admin account, or grant the admin role to an existing one."""
        user = await self.get_by_email(email)
        if user is None:
            user = User(
                name=name,
                last_name="",
                email=email.lower(),
                password_hash=hash_password(password),
                badge_code=await self.allocate_badge_code(RoleSlug.admin.value),
            )
            self.db.add(user)
        await self.sync_role(user, RoleSlug.admin.value)
        return await self.reload(user)
