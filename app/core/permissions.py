"""Role-based access control and permissions."""

from enum import Enum
from typing import Any, Callable

from fastapi import Depends

from app.api.deps import get_current_active_user
from app.core.exceptions import AuthorizationError
from app.models.user import User


class UserRole(str, Enum):
    """User roles in the system."""

    CUSTOMER = "customer"
    DRIVER = "driver"
    ADMIN = "admin"


class Permission(str, Enum):
    """System permissions."""

    # Bookings
    CANCEL_BOOKING = "cancel_booking"
    EDIT_BOOKING = "edit_booking"
    REVIEW_BOOKING = "review_booking"
    CHANGE_BOOKING_STATUS = "change_booking_status"
    ASSIGN_TAXI = "assign_taxi"
    VIEW_ALL_BOOKINGS = "view_all_bookings"
    DELETE_BOOKING = "delete_booking"

    # Taxis
    UPDATE_OWN_TAXI = "update_own_taxi"
    MANAGE_TAXIS = "manage_taxis"

    # Fare catalog
    MANAGE_FARE_CATALOG = "manage_fare_catalog"

    # Admin
    MANAGE_USERS = "manage_users"
    VIEW_STATS = "view_stats"


# Role to permissions mapping
ROLE_PERMISSIONS: dict[UserRole, set[Permission]] = {
    UserRole.CUSTOMER: {
        Permission.CANCEL_BOOKING,
        Permission.EDIT_BOOKING,
        Permission.REVIEW_BOOKING,
    },
    UserRole.DRIVER: {
        Permission.CHANGE_BOOKING_STATUS,
        Permission.ASSIGN_TAXI,
        Permission.UPDATE_OWN_TAXI,
    },
    UserRole.ADMIN: {
        # Admins have all permissions
        perm for perm in Permission
    },
}


def has_permission(role: UserRole | str, permission: Permission) -> bool:
    """Check if a role has a specific permission."""
    try:
        role = UserRole(role)
    except ValueError:
        return False
    return permission in ROLE_PERMISSIONS.get(role, set())


def require_role(*allowed_roles: UserRole) -> Callable[..., Any]:
    """Dependency to require specific roles."""

    async def role_checker(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role not in {role.value for role in allowed_roles}:
            raise AuthorizationError(f"Role '{current_user.role}' is not authorized for this action")
        return current_user

    return role_checker


def require_permission(permission: Permission) -> Callable[..., Any]:
    """Dependency to require a specific permission."""

    async def permission_checker(current_user: User = Depends(get_current_active_user)) -> User:
        if not has_permission(current_user.role, permission):
            raise AuthorizationError(f"Permission '{permission.value}' is required for this action")
        return current_user

    return permission_checker


# Convenience dependencies
require_admin = require_role(UserRole.ADMIN)
require_user_manager = require_permission(Permission.MANAGE_USERS)
require_stats_viewer = require_permission(Permission.VIEW_STATS)
require_catalog_manager = require_permission(Permission.MANAGE_FARE_CATALOG)
require_taxi_manager = require_permission(Permission.MANAGE_TAXIS)
