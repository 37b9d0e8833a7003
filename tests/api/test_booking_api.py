import uuid

import pytest

from tests.conftest import MIDTOWN_KOR, auth_headers, booking_payload


async def _set_status(client, booking_id, user, status, cancel_reason=None):
    body = {"status": status}
    if cancel_reason is not None:
        body["cancel_reason"] = cancel_reason
    return await client.put(
        f"/api/bookings/{booking_id}/status", json=body, headers=auth_headers(user)
    )


async def _taxi_status(client, taxi_id) -> str:
    response = await client.get(f"/api/taxis/{taxi_id}")
    assert response.status_code == 200
    return response.json()["status"]


@pytest.mark.usefixtures("seeded_catalog")
class TestCreateBooking:
    async def test_customer_booking_starts_pending_with_catalog_price(
        self, client, customer, create_booking
    ):
        booking = await create_booking(customer)

        assert booking["status"] == "pending"
        assert booking["booking_number"].startswith("YR")
        assert len(booking["booking_number"]) == 8
        assert booking["customer_id"] == str(customer.id)
        assert booking["taxi_id"] is None
        assert booking["route_id"] is not None
        assert booking["pricing"] == {
            "reservation_fee": 10,
            "service_fee": 75,
            "vehicle_upgrade_fee": 0,
            "total_amount": 85,
            "currency": "USD",
            "fare_source": "catalog",
        }
        assert booking["passenger_info"] == {"total_passengers": 2, "total_luggage": 2}
        assert booking["cancel_reason"] is None

    async def test_guest_booking(self, client, create_booking):
        booking = await create_booking()

        assert booking["customer_id"] is None
        assert booking["status"] == "pending"

    async def test_upgrades_and_explicit_passenger_info(self, client, create_booking):
        booking = await create_booking(
            vehicles=[{"type": "xl", "passengers": 4}, {"type": "premium", "passengers": 2}],
            passenger_info={"total_passengers": 5, "total_luggage": 6},
            flight_info={"flight_number": "KE081", "terminal": "1"},
        )

        assert booking["pricing"]["vehicle_upgrade_fee"] == 35
        assert booking["pricing"]["total_amount"] == 120
        assert booking["passenger_info"] == {"total_passengers": 5, "total_luggage": 6}
        assert booking["flight_info"] == {"flight_number": "KE081", "terminal": "1"}
        assert [v["type"] for v in booking["vehicles"]] == ["xl", "premium"]

    async def test_unknown_corridor_uses_default_fare(self, client, create_booking):
        booking = await create_booking(departure="서울역", arrival="부산역")

        assert booking["route_id"] is None
        assert booking["pricing"]["fare_source"] == "default"
        assert booking["pricing"]["total_amount"] == 80

    async def test_pre_assigned_taxi_confirms_and_claims(
        self, client, customer, create_taxi, create_booking
    ):
        taxi = await create_taxi()

        booking = await create_booking(customer, taxi_id=str(taxi.id))

        assert booking["status"] == "confirmed"
        assert booking["taxi_id"] == str(taxi.id)
        assert booking["confirmed_at"] is not None
        assert await _taxi_status(client, taxi.id) == "busy"

    async def test_busy_taxi_is_rejected_without_creating_booking(
        self, client, customer, admin, create_taxi, create_booking
    ):
        taxi = await create_taxi()
        await create_booking(customer, taxi_id=str(taxi.id))

        response = await client.post(
            "/api/bookings",
            json=booking_payload(taxi_id=str(taxi.id)),
            headers=auth_headers(customer),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Taxi is not available"
        listing = await client.get("/api/bookings", headers=auth_headers(admin))
        assert listing.json()["total"] == 1

    async def test_offline_taxi_is_rejected(self, client, create_taxi):
        taxi = await create_taxi(status="offline")

        response = await client.post("/api/bookings", json=booking_payload(taxi_id=str(taxi.id)))

        assert response.status_code == 400
        assert await _taxi_status(client, taxi.id) == "offline"

    async def test_unknown_taxi_is_not_found(self, client):
        response = await client.post(
            "/api/bookings", json=booking_payload(taxi_id=str(uuid.uuid4()))
        )

        assert response.status_code == 404

    async def test_missing_fields_are_reported_per_field(self, client):
        payload = booking_payload()
        del payload["customer_info"]
        payload["trip_details"]["departure"].pop("datetime")

        response = await client.post("/api/bookings", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "Validation failed"
        fields = {error["field"] for error in body["errors"]}
        assert "customer_info" in fields
        assert "trip_details.departure" in fields

    async def test_invalid_phone_is_rejected(self, client):
        payload = booking_payload(customer_info={"name": "Kim", "phone": "call me"})

        response = await client.post("/api/bookings", json=payload)

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "customer_info.phone"

    async def test_invalid_token_is_rejected_for_create(self, client):
        response = await client.post(
            "/api/bookings",
            json=booking_payload(),
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 401


@pytest.mark.usefixtures("seeded_catalog")
class TestCalculate:
    async def test_english_lookup(self, client):
        response = await client.post(
            "/api/bookings/calculate",
            json={"departure": "JFK airport", "arrival": "Manhattan Midtown", "lang": "eng"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["match_type"] == "exact"
        assert body["pricing"]["reservation_fee"] == 10
        assert body["pricing"]["service_fee"] == 75
        assert body["pricing"]["total_amount"] == 85

    async def test_upgrade_included(self, client):
        response = await client.post(
            "/api/bookings/calculate",
            json={
                "departure": "LAX airport",
                "arrival": "Downtown LA",
                "lang": "eng",
                "vehicles": [{"type": "premium"}],
            },
        )

        assert response.json()["pricing"]["total_amount"] == 15 + 65 + 25

    async def test_region_is_normalised(self, client):
        response = await client.post(
            "/api/bookings/calculate",
            json={
                "departure": "LAX airport",
                "arrival": "Downtown LA",
                "lang": "eng",
                "region": " ca ",
            },
        )

        assert response.json()["match_type"] == "exact"
        assert response.json()["pricing"]["total_amount"] == 80


@pytest.mark.usefixtures("seeded_catalog")
class TestLifecycle:
    async def test_assign_then_complete_releases_taxi(
        self, client, customer, admin, create_taxi, create_booking
    ):
        taxi = await create_taxi()
        booking = await create_booking(customer)
        assert booking["status"] == "pending"

        response = await client.put(
            f"/api/bookings/{booking['id']}/assign-taxi",
            json={"taxi_id": str(taxi.id)},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert response.json()["taxi_id"] == str(taxi.id)
        assert await _taxi_status(client, taxi.id) == "busy"

        response = await _set_status(client, booking["id"], admin, "in-progress")
        assert response.status_code == 200
        assert response.json()["actual_pickup_time"] is not None

        response = await _set_status(client, booking["id"], admin, "completed")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["actual_dropoff_time"] is not None
        assert body["completed_at"] is not None
        assert await _taxi_status(client, taxi.id) == "available"

    @pytest.mark.parametrize("target", ["pending", "confirmed", "in-progress", "cancelled"])
    async def test_completed_booking_cannot_move(
        self, client, customer, admin, create_taxi, create_booking, target
    ):
        taxi = await create_taxi()
        booking = await create_booking(customer, taxi_id=str(taxi.id))
        await _set_status(client, booking["id"], admin, "in-progress")
        await _set_status(client, booking["id"], admin, "completed")

        response = await _set_status(
            client,
            booking["id"],
            admin,
            target,
            cancel_reason="late" if target == "cancelled" else None,
        )

        assert response.status_code == 400
        assert "Invalid booking transition" in response.json()["detail"]
        current = (
            await client.get(f"/api/bookings/{booking['id']}", headers=auth_headers(admin))
        ).json()
        assert current["status"] == "completed"
        assert current["cancel_reason"] is None
        assert current["completed_at"] is not None
        assert await _taxi_status(client, taxi.id) == "available"

    async def test_pending_cannot_skip_to_completed(self, client, admin, customer, create_booking):
        booking = await create_booking(customer)

        response = await _set_status(client, booking["id"], admin, "completed")

        assert response.status_code == 400

    async def test_customer_cannot_cancel_someone_elses_booking(
        self, client, customer, other_customer, create_booking
    ):
        booking = await create_booking(customer)

        response = await _set_status(
            client, booking["id"], other_customer, "cancelled", cancel_reason="mine now"
        )

        assert response.status_code == 403
        current = (
            await client.get(f"/api/bookings/{booking['id']}", headers=auth_headers(customer))
        ).json()
        assert current["status"] == "pending"

    async def test_customer_may_only_cancel(self, client, customer, create_booking):
        booking = await create_booking(customer)

        response = await _set_status(client, booking["id"], customer, "confirmed")

        assert response.status_code == 403

    async def test_forbidden_checked_before_transition_legality(
        self, client, customer, create_booking
    ):
        booking = await create_booking(customer)

        response = await _set_status(client, booking["id"], customer, "completed")

        assert response.status_code == 403

    async def test_cancel_requires_reason(self, client, customer, create_booking):
        booking = await create_booking(customer)

        response = await _set_status(client, booking["id"], customer, "cancelled")

        assert response.status_code == 400
        assert response.json()["errors"]

    async def test_customer_cancel_releases_taxi(
        self, client, customer, create_taxi, create_booking
    ):
        taxi = await create_taxi()
        booking = await create_booking(customer, taxi_id=str(taxi.id))

        response = await _set_status(
            client, booking["id"], customer, "cancelled", cancel_reason="Flight delayed"
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "cancelled"
        assert body["cancel_reason"] == "Flight delayed"
        assert body["cancelled_at"] is not None
        assert await _taxi_status(client, taxi.id) == "available"

    async def test_cancel_reason_in_camel_case(self, client, customer, create_booking):
        booking = await create_booking(customer)

        response = await client.put(
            f"/api/bookings/{booking['id']}/status",
            json={"status": "cancelled", "cancelReason": "Plans changed"},
            headers=auth_headers(customer),
        )

        assert response.status_code == 200
        assert response.json()["cancel_reason"] == "Plans changed"

    async def test_driver_moves_own_booking(
        self, client, customer, driver, create_taxi, create_booking
    ):
        taxi = await create_taxi(driver_id=driver.id)
        booking = await create_booking(customer, taxi_id=str(taxi.id))

        response = await _set_status(client, booking["id"], driver, "in-progress")

        assert response.status_code == 200
        assert response.json()["status"] == "in-progress"

    async def test_driver_cannot_move_other_taxis_booking(
        self, client, customer, driver, create_taxi, create_booking
    ):
        await create_taxi(driver_id=driver.id)
        other_taxi = await create_taxi()
        booking = await create_booking(customer, taxi_id=str(other_taxi.id))

        response = await _set_status(client, booking["id"], driver, "in-progress")

        assert response.status_code == 403


@pytest.mark.usefixtures("seeded_catalog")
class TestAssignTaxi:
    async def test_camel_case_body(self, client, customer, admin, create_taxi, create_booking):
        taxi = await create_taxi()
        booking = await create_booking(customer)

        response = await client.put(
            f"/api/bookings/{booking['id']}/assign-taxi",
            json={"taxiId": str(taxi.id)},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["taxi_id"] == str(taxi.id)
        assert await _taxi_status(client, taxi.id) == "busy"

    async def test_busy_taxi_cannot_be_assigned(
        self, client, customer, admin, create_taxi, create_booking
    ):
        taxi = await create_taxi(status="busy")
        booking = await create_booking(customer)

        response = await client.put(
            f"/api/bookings/{booking['id']}/assign-taxi",
            json={"taxi_id": str(taxi.id)},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        current = (
            await client.get(f"/api/bookings/{booking['id']}", headers=auth_headers(admin))
        ).json()
        assert current["status"] == "pending"
        assert current["taxi_id"] is None

    async def test_customer_cannot_assign(self, client, customer, create_taxi, create_booking):
        taxi = await create_taxi()
        booking = await create_booking(customer)

        response = await client.put(
            f"/api/bookings/{booking['id']}/assign-taxi",
            json={"taxi_id": str(taxi.id)},
            headers=auth_headers(customer),
        )

        assert response.status_code == 403
        assert await _taxi_status(client, taxi.id) == "available"

    async def test_unknown_taxi(self, client, customer, admin, create_booking):
        booking = await create_booking(customer)

        response = await client.put(
            f"/api/bookings/{booking['id']}/assign-taxi",
            json={"taxi_id": str(uuid.uuid4())},
            headers=auth_headers(admin),
        )

        assert response.status_code == 404

    async def test_only_pending_bookings(
        self, client, customer, admin, create_taxi, create_booking
    ):
        booking = await create_booking(customer, taxi_id=str((await create_taxi()).id))
        spare = await create_taxi()

        response = await client.put(
            f"/api/bookings/{booking['id']}/assign-taxi",
            json={"taxi_id": str(spare.id)},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        assert await _taxi_status(client, spare.id) == "available"

    async def test_driver_assigns_own_taxi(
        self, client, customer, driver, create_taxi, create_booking
    ):
        taxi = await create_taxi(driver_id=driver.id)
        booking = await create_booking(customer)

        response = await client.put(
            f"/api/bookings/{booking['id']}/assign-taxi",
            json={"taxi_id": str(taxi.id)},
            headers=auth_headers(driver),
        )

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"


@pytest.mark.usefixtures("seeded_catalog")
class TestReview:
    @pytest.fixture
    async def completed_booking(self, client, customer, admin, create_taxi, create_booking):
        taxi = await create_taxi()
        booking = await create_booking(customer, taxi_id=str(taxi.id))
        await _set_status(client, booking["id"], admin, "in-progress")
        await _set_status(client, booking["id"], admin, "completed")
        return booking, taxi

    async def test_review_in_progress_booking_rejected(
        self, client, customer, admin, create_taxi, create_booking
    ):
        taxi = await create_taxi()
        booking = await create_booking(customer, taxi_id=str(taxi.id))
        await _set_status(client, booking["id"], admin, "in-progress")

        response = await client.put(
            f"/api/bookings/{booking['id']}/review",
            json={"rating": 5},
            headers=auth_headers(customer),
        )

        assert response.status_code == 400
        current = (
            await client.get(f"/api/bookings/{booking['id']}", headers=auth_headers(customer))
        ).json()
        assert current["rating"] is None

    async def test_review_updates_taxi_rating(self, client, customer, completed_booking):
        booking, taxi = completed_booking

        response = await client.put(
            f"/api/bookings/{booking['id']}/review",
            json={"rating": 4, "review": "Smooth ride"},
            headers=auth_headers(customer),
        )

        assert response.status_code == 200
        assert response.json()["rating"] == 4
        assert response.json()["review"] == "Smooth ride"
        assert response.json()["reviewed_at"] is not None
        taxi_body = (await client.get(f"/api/taxis/{taxi.id}")).json()
        assert taxi_body["rating"] == 4.0
        assert taxi_body["total_trips"] == 1

    async def test_second_review_conflicts(self, client, customer, completed_booking):
        booking, _ = completed_booking
        url = f"/api/bookings/{booking['id']}/review"
        await client.put(url, json={"rating": 5}, headers=auth_headers(customer))

        response = await client.put(url, json={"rating": 1}, headers=auth_headers(customer))

        assert response.status_code == 409
        current = (await client.get(f"/api/bookings/{booking['id']}", headers=auth_headers(customer))).json()
        assert current["rating"] == 5

    async def test_only_booking_customer_reviews(self, client, other_customer, completed_booking):
        booking, _ = completed_booking

        response = await client.put(
            f"/api/bookings/{booking['id']}/review",
            json={"rating": 5},
            headers=auth_headers(other_customer),
        )

        assert response.status_code == 403

    async def test_rating_out_of_range(self, client, customer, completed_booking):
        booking, _ = completed_booking

        response = await client.put(
            f"/api/bookings/{booking['id']}/review",
            json={"rating": 6},
            headers=auth_headers(customer),
        )

        assert response.status_code == 400


@pytest.mark.usefixtures("seeded_catalog")
class TestEditBooking:
    async def test_moving_dropoff_reprices(self, client, customer, create_booking):
        booking = await create_booking(customer)

        response = await client.put(
            f"/api/bookings/{booking['id']}",
            json={"dropoff_location": "NY 플러싱", "special_requests": "Child seat"},
            headers=auth_headers(customer),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["trip_details"]["arrival"]["location"] == "NY 플러싱"
        assert body["special_requests"] == "Child seat"
        assert body["pricing"]["service_fee"] == 55
        assert body["pricing"]["total_amount"] == 65

    async def test_confirmed_booking_is_locked(
        self, client, customer, create_taxi, create_booking
    ):
        booking = await create_booking(customer, taxi_id=str((await create_taxi()).id))

        response = await client.put(
            f"/api/bookings/{booking['id']}",
            json={"special_requests": "Too late"},
            headers=auth_headers(customer),
        )

        assert response.status_code == 400

    async def test_other_customer_cannot_edit(
        self, client, customer, other_customer, create_booking
    ):
        booking = await create_booking(customer)

        response = await client.put(
            f"/api/bookings/{booking['id']}",
            json={"pickup_location": MIDTOWN_KOR},
            headers=auth_headers(other_customer),
        )

        assert response.status_code == 403

    async def test_status_is_not_editable(self, client, customer, create_booking):
        booking = await create_booking(customer)

        response = await client.put(
            f"/api/bookings/{booking['id']}",
            json={"status": "confirmed"},
            headers=auth_headers(customer),
        )

        assert response.status_code == 400


@pytest.mark.usefixtures("seeded_catalog")
class TestVisibility:
    async def test_list_is_scoped_by_role(
        self, client, customer, other_customer, driver, admin, create_taxi, create_booking
    ):
        taxi = await create_taxi(driver_id=driver.id)
        await create_booking(customer, taxi_id=str(taxi.id))
        await create_booking(customer)
        await create_booking(other_customer)

        mine = (await client.get("/api/bookings", headers=auth_headers(customer))).json()
        theirs = (await client.get("/api/bookings", headers=auth_headers(other_customer))).json()
        assigned = (await client.get("/api/bookings", headers=auth_headers(driver))).json()
        everything = (await client.get("/api/bookings", headers=auth_headers(admin))).json()

        assert mine["total"] == 2
        assert theirs["total"] == 1
        assert assigned["total"] == 1
        assert assigned["bookings"][0]["taxi_id"] == str(taxi.id)
        assert everything["total"] == 3

    async def test_driver_without_taxi_sees_nothing(
        self, client, customer, driver, create_booking
    ):
        await create_booking(customer)

        response = await client.get("/api/bookings", headers=auth_headers(driver))

        assert response.json()["total"] == 0

    async def test_status_filter_and_pagination(self, client, customer, admin, create_booking):
        for _ in range(3):
            await create_booking(customer)

        response = await client.get(
            "/api/bookings",
            params={"status": "pending", "page": 2, "limit": 2},
            headers=auth_headers(admin),
        )

        body = response.json()
        assert body["total"] == 3
        assert body["pages"] == 2
        assert len(body["bookings"]) == 1

    async def test_list_requires_auth(self, client):
        response = await client.get("/api/bookings")

        assert response.status_code == 401

    async def test_other_customer_cannot_view(
        self, client, customer, other_customer, create_booking
    ):
        booking = await create_booking(customer)

        response = await client.get(
            f"/api/bookings/{booking['id']}", headers=auth_headers(other_customer)
        )

        assert response.status_code == 403

    async def test_lookup_by_number(self, client, create_booking):
        booking = await create_booking()
        typed = f" {booking['booking_number'].lower()} "

        response = await client.get(f"/api/bookings/number/{typed}")

        assert response.status_code == 200
        assert response.json()["id"] == booking["id"]

    async def test_unknown_number(self, client):
        response = await client.get("/api/bookings/number/YR000000")

        assert response.status_code == 404

    async def test_active_list(self, client, customer, admin, create_booking):
        first = await create_booking(customer)
        second = await create_booking(customer)
        await _set_status(client, second["id"], customer, "cancelled", cancel_reason="Changed plans")

        response = await client.get("/api/bookings/active", headers=auth_headers(customer))

        assert [b["id"] for b in response.json()] == [first["id"]]


@pytest.mark.usefixtures("seeded_catalog")
class TestDeleteAndStats:
    async def test_admin_delete_releases_taxi(
        self, client, customer, admin, create_taxi, create_booking
    ):
        taxi = await create_taxi()
        booking = await create_booking(customer, taxi_id=str(taxi.id))

        response = await client.delete(
            f"/api/bookings/{booking['id']}", headers=auth_headers(admin)
        )

        assert response.status_code == 204
        assert await _taxi_status(client, taxi.id) == "available"
        missing = await client.get(f"/api/bookings/{booking['id']}", headers=auth_headers(admin))
        assert missing.status_code == 404

    async def test_customer_cannot_delete(self, client, customer, create_booking):
        booking = await create_booking(customer)

        response = await client.delete(
            f"/api/bookings/{booking['id']}", headers=auth_headers(customer)
        )

        assert response.status_code == 403

    async def test_driver_cannot_delete_or_view_stats(
        self, client, customer, driver, create_taxi, create_booking
    ):
        taxi = await create_taxi(driver_id=driver.id)
        booking = await create_booking(customer, taxi_id=str(taxi.id))

        deleted = await client.delete(
            f"/api/bookings/{booking['id']}", headers=auth_headers(driver)
        )
        stats = await client.get("/api/bookings/stats/overview", headers=auth_headers(driver))

        assert deleted.status_code == 403
        assert stats.status_code == 403

    async def test_stats_overview(self, client, customer, admin, create_booking):
        await create_booking(customer)
        cancelled = await create_booking(customer)
        await _set_status(client, cancelled["id"], customer, "cancelled", cancel_reason="No longer needed")

        response = await client.get("/api/bookings/stats/overview", headers=auth_headers(admin))

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["today"] == 2
        assert body["by_status"]["pending"] == {"count": 1, "total_amount": 85}
        assert body["by_status"]["cancelled"]["count"] == 1
        assert body["by_status"]["completed"] == {"count": 0, "total_amount": 0}
