"""Admin-facing routes for user management."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.database import get_db
from careconnect.core.deps import require_admin
from careconnect.core.exceptions import NotFoundError, ValidationError
from careconnect.modules.users.models import User
from careconnect.modules.users.schemas import UserAdminUpdate, UserPublic
from careconnect.shared.enums import UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/admin/users", tags=["admin-users"])


@router.get("", response_model=list[UserPublic])
async def list_users(
    role: UserRole | None = Query(None),
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[User]:
    stmt = select(User).order_by(User.created_at.desc())
    if role is not None:
        stmt = stmt.where(User.role == role)
    result = await db.execute(stmt)
    return list(result.scalars().all())


@router.patch("/{user_id}", response_model=UserPublic)
async def update_user(
    user_id: str,
    payload: UserAdminUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    update_data = payload.model_dump(exclude_none=True)
    if user.user_id == admin.user_id and (
        update_data.get("is_active") is False or update_data.get("role", UserRole.ADMIN) != UserRole.ADMIN
    ):
        raise ValidationError("Admins cannot demote or deactivate themselves")
    for field, value in update_data.items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    logger.info("Admin %s updated user %s: %s", admin.user_id, user_id, update_data)
    return user
