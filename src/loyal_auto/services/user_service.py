"""User administration: staff accounts, roles, activation and passwords."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from loyal_auto.domain.enums import UserRole
from loyal_auto.domain.errors import NotFoundError, ValidationError
from loyal_auto.domain.models import User, utcnow
from loyal_auto.services.auth_service import (
    generate_password,
    get_user_by_email,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)


def parse_role(value: str) -> UserRole:
    try:
        return UserRole(value)
    except ValueError:
        raise ValidationError(f"Invalid role: {value}")


class UserService:
    """Staff account operations. The caller commits."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def get_user(self, user_id: str) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError("User not found")
        return user

    async def create_user(self, name: str, email: str, password: str, role: str) -> User:
        role_enum = parse_role(role)
        email = email.strip().lower()
        if await get_user_by_email(self.db, email):
            raise ValidationError("Email already registered")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            role=role_enum.value,
            is_active=True,
        )
        self.db.add(user)
        await self.db.flush()
        logger.info("Created %s user %s", role_enum.value, user.id)
        return user

    async def reset_password(self, user_id: str) -> str:
        """Replace the user's password with a generated one and return it in clear."""
        user = await self.get_user(user_id)
        new_password = generate_password()
        user.password_hash = hash_password(new_password)
        user.updated_at = utcnow()
        await self.db.flush()
        logger.info("Password reset for user %s", user.id)
        return new_password

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")
        user.password_hash = hash_password(new_password)
        user.updated_at = utcnow()
        await self.db.flush()

    async def set_active(self, acting_user: User, user_id: str, active: bool) -> User:
        user = await self.get_user(user_id)
        if user.id == acting_user.id and not active:
            raise ValidationError("You cannot deactivate your own account")
        user.is_active = active
        user.updated_at = utcnow()
        await self.db.flush()
        logger.info("User %s active=%s (by %s)", user.id, active, acting_user.id)
        return user

    async def set_role(self, acting_user: User, user_id: str, role: str) -> User:
        role_enum = parse_role(role)
        user = await self.get_user(user_id)
        if user.id == acting_user.id and role_enum != UserRole.ADMIN:
            raise ValidationError("You cannot remove your own admin role")
        user.role = role_enum.value
        user.updated_at = utcnow()
        await self.db.flush()
        logger.info("User %s role=%s (by %s)", user.id, role_enum.value, acting_user.id)
        return user
