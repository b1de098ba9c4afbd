"""Authentication routes: login, me, password change."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from loyal_auto.domain.enums import Actor, UserRole
from loyal_auto.domain.models import User, utcnow
from loyal_auto.domain.schemas import (
    PasswordChange,
    TokenResponse,
    UserLogin,
    UserResponse,
)
from loyal_auto.infra.database import get_db
from loyal_auto.services.auth_service import authenticate, create_access_token, decode_token
from loyal_auto.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


async def get_current_user_dep(
    request: Request, db: AsyncSession = Depends(get_db)
) -> User:
    """Dependency: extract current user from Bearer token."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid token",
        )
    token = auth_header.removeprefix("Bearer ")
    payload = decode_token(token)
    if not payload or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    result = await db.execute(select(User).where(User.id == payload["sub"]))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


def require_role(*roles: str):
    """Factory: dependency that checks user has one of the required roles."""

    async def checker(user: User = Depends(get_current_user_dep)):
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return checker


require_admin = require_role(UserRole.ADMIN.value)


def actor_for(user: User) -> Actor:
    """The state-machine actor a staff member acts as."""
    return Actor.ADMIN if user.role == UserRole.ADMIN.value else Actor.OPERATOR


@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    user = await authenticate(db, data.email, data.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    user.last_login_at = utcnow()
    await db.commit()
    token = create_access_token(user)
    logger.info("User %s logged in", user.id)
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user_dep)):
    return UserResponse.model_validate(user)


@router.post("/change-password")
async def change_password(
    data: PasswordChange,
    user: User = Depends(get_current_user_dep),
    db: AsyncSession = Depends(get_db),
):
    await UserService(db).change_password(user, data.current_password, data.new_password)
    await db.commit()
    return {"success": True}
