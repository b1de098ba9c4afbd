"""Admin user administration: list, create, reset password, activate, role."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from loyal_auto.app.routes.auth import require_admin
from loyal_auto.domain.models import User
from loyal_auto.domain.schemas import (
    PasswordResetResponse,
    UserActiveToggle,
    UserCreate,
    UserResponse,
    UserRoleUpdate,
)
from loyal_auto.infra.database import get_db
from loyal_auto.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def list_users(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users = await UserService(db).list_users()
    return [UserResponse.model_validate(u) for u in users]


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    data: UserCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).create_user(data.name, data.email, data.password, data.role)
    await db.commit()
    return UserResponse.model_validate(user)


@router.post("/{user_id}/reset-password", response_model=PasswordResetResponse)
async def reset_password(
    user_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    new_password = await UserService(db).reset_password(user_id)
    await db.commit()
    return PasswordResetResponse(new_password=new_password)


@router.patch("/{user_id}/active", response_model=UserResponse)
async def toggle_active(
    user_id: str,
    data: UserActiveToggle,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).set_active(admin, user_id, data.active)
    await db.commit()
    return UserResponse.model_validate(user)


@router.patch("/{user_id}/role", response_model=UserResponse)
async def update_role(
    user_id: str,
    data: UserRoleUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await UserService(db).set_role(admin, user_id, data.role)
    await db.commit()
    return UserResponse.model_validate(user)
