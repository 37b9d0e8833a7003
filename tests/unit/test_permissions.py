import pytest

from app.core.permissions import ROLE_PERMISSIONS, Permission, UserRole, has_permission


class TestRolePermissions:
    def test_admin_holds_every_permission(self):
        assert ROLE_PERMISSIONS[UserRole.ADMIN] == set(Permission)

    @pytest.mark.parametrize(
        "permission",
        [Permission.CANCEL_BOOKING, Permission.EDIT_BOOKING, Permission.REVIEW_BOOKING],
    )
    def test_customer_may(self, permission):
        assert has_permission("customer", permission)

    @pytest.mark.parametrize(
        "permission",
        [
            Permission.CHANGE_BOOKING_STATUS,
            Permission.DELETE_BOOKING,
            Permission.VIEW_ALL_BOOKINGS,
            Permission.VIEW_STATS,
        ],
    )
    def test_customer_may_not(self, permission):
        assert not has_permission("customer", permission)

    @pytest.mark.parametrize(
        "permission",
        [
            Permission.CANCEL_BOOKING,
            Permission.REVIEW_BOOKING,
            Permission.DELETE_BOOKING,
            Permission.MANAGE_USERS,
            Permission.VIEW_STATS,
        ],
    )
    def test_driver_may_not(self, permission):
        assert not has_permission("driver", permission)

    def test_driver_moves_bookings_of_own_taxi(self):
        assert has_permission("driver", Permission.CHANGE_BOOKING_STATUS)
        assert has_permission("driver", Permission.ASSIGN_TAXI)

    def test_unknown_role_has_nothing(self):
        assert not any(has_permission("dispatcher", permission) for permission in Permission)
