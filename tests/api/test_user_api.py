from tests.conftest import auth_headers


class TestProfile:
    async def test_update_own_profile(self, client, customer):
        response = await client.patch(
            "/api/users/me",
            json={"name": "Kim Updated", "phone": "+1 917 555 0199"},
            headers=auth_headers(customer),
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Kim Updated"
        assert response.json()["phone"] == "+1 917 555 0199"

    async def test_invalid_phone(self, client, customer):
        response = await client.patch(
            "/api/users/me", json={"phone": "12"}, headers=auth_headers(customer)
        )

        assert response.status_code == 400


class TestAdminUsers:
    async def test_list_by_role(self, client, admin, customer, driver):
        response = await client.get(
            "/api/users", params={"role": "driver"}, headers=auth_headers(admin)
        )

        body = response.json()
        assert body["total"] == 1
        assert body["users"][0]["id"] == str(driver.id)

    async def test_customer_cannot_list(self, client, customer):
        response = await client.get("/api/users", headers=auth_headers(customer))

        assert response.status_code == 403

    async def test_promote_to_driver(self, client, admin, customer):
        response = await client.patch(
            f"/api/users/{customer.id}/role", json={"role": "driver"}, headers=auth_headers(admin)
        )

        assert response.json()["role"] == "driver"

    async def test_admin_cannot_demote_self(self, client, admin):
        response = await client.patch(
            f"/api/users/{admin.id}/role", json={"role": "customer"}, headers=auth_headers(admin)
        )

        assert response.status_code == 400

    async def test_deactivated_user_is_locked_out(self, client, admin, customer):
        response = await client.patch(
            f"/api/users/{customer.id}/deactivate", headers=auth_headers(admin)
        )

        assert response.json()["is_active"] is False
        me = await client.get("/api/users/me", headers=auth_headers(customer))
        assert me.status_code == 403

    async def test_admin_cannot_deactivate_self(self, client, admin):
        response = await client.patch(
            f"/api/users/{admin.id}/deactivate", headers=auth_headers(admin)
        )

        assert response.status_code == 400


class TestUserStats:
    async def test_counts_by_role(
        self, client, admin, customer, other_customer, driver, create_user
    ):
        await create_user(role="driver", is_active=False)

        response = await client.get("/api/users/stats/overview", headers=auth_headers(admin))

        assert response.status_code == 200
        assert response.json() == {
            "total": 5,
            "active": 4,
            "by_role": {"customer": 2, "driver": 2, "admin": 1},
        }

    async def test_driver_cannot_view(self, client, driver):
        response = await client.get("/api/users/stats/overview", headers=auth_headers(driver))

        assert response.status_code == 403
