"""User endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_active_user, get_db
from app.core.exceptions import NotFoundError, ValidationError
from app.core.permissions import UserRole, require_stats_viewer, require_user_manager
from app.models.user import User
from app.schemas.user import (
    UserListResponse,
    UserResponse,
    UserRoleUpdate,
    UserStatsResponse,
    UserUpdate,
)

router = APIRouter()


async def _get_user(db: AsyncSession, user_id: UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User", str(user_id))
    return user


@router.get("/me", response_model=UserResponse)
async def get_my_profile(
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> User:
    """Get current user's profile."""
    return current_user


@router.patch("/me", response_model=UserResponse)
async def update_my_profile(
    updates: UserUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Update current user's profile."""
    for field, value in updates.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)

    await db.flush()
    return current_user


@router.get("", response_model=UserListResponse)
async def list_users(
    admin: Annotated[User, Depends(require_user_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
    role: str | None = Query(default=None, pattern="^(customer|driver|admin)$"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> UserListResponse:
    """List user accounts (admin only)."""
    query = select(User)
    if role:
        query = query.where(User.role == role)

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar() or 0

    query = query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
    result = await db.execute(query)

    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in result.scalars().all()],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/stats/overview", response_model=UserStatsResponse)
async def get_user_stats(
    admin: Annotated[User, Depends(require_stats_viewer)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserStatsResponse:
    """Account totals by role (admin only)."""
    grouped = await db.execute(select(User.role, func.count(User.id)).group_by(User.role))
    by_role = {role.value: 0 for role in UserRole}
    by_role.update({role: count for role, count in grouped.all()})

    active_result = await db.execute(
        select(func.count(User.id)).where(User.is_active.is_(True))
    )

    return UserStatsResponse(
        total=sum(by_role.values()),
        active=active_result.scalar() or 0,
        by_role=by_role,
    )


@router.patch("/{user_id}/role", response_model=UserResponse)
async def change_user_role(
    user_id: UUID,
    request: UserRoleUpdate,
    admin: Annotated[User, Depends(require_user_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Change a user's role (admin only)."""
    user = await _get_user(db, user_id)
    if user.id == admin.id and request.role != "admin":
        raise ValidationError("Admins cannot demote themselves")

    user.role = request.role
    await db.flush()
    return user


@router.patch("/{user_id}/deactivate", response_model=UserResponse)
async def deactivate_user(
    user_id: UUID,
    admin: Annotated[User, Depends(require_user_manager)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Deactivate a user account (admin only)."""
    user = await _get_user(db, user_id)
    if user.id == admin.id:
        raise ValidationError("Admins cannot deactivate themselves")

    user.is_active = False
    await db.flush()
    return user
