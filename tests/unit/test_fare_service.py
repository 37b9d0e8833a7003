import logging

import pytest

from app.schemas.fare_route import FareRouteCreate
from app.services.catalog_service import catalog_service
from app.services.fare_service import FareService, fare_service
from tests.conftest import JFK_KOR, MIDTOWN_KOR


def _row(**overrides) -> FareRouteCreate:
    values = {
        "region": "NY",
        "departure_kor": "NY 퀸즈",
        "departure_eng": "Queens",
        "arrival_kor": "NY 브롱스",
        "arrival_eng": "Bronx",
        "reservation_fee": 10,
        "local_payment_fee": 40,
        "priority": 4,
    }
    values.update(overrides)
    return FareRouteCreate(**values)


@pytest.mark.usefixtures("seeded_catalog")
class TestResolve:
    async def test_exact_korean_match(self, db):
        match = await fare_service.resolve(db, JFK_KOR, MIDTOWN_KOR)

        assert match.match_type == "exact"
        assert (match.reservation_fee, match.local_payment_fee, match.total) == (10, 75, 85)
        assert match.route.priority == 1
        assert not match.is_default

    async def test_exact_english_match(self, db):
        match = await fare_service.resolve(db, "JFK airport", "Manhattan Midtown", lang="eng")

        assert match.match_type == "exact"
        assert (match.reservation_fee, match.local_payment_fee, match.total) == (10, 75, 85)

    async def test_english_names_do_not_match_exactly_in_korean_mode(self, db):
        match = await fare_service.resolve(db, "JFK airport", "Manhattan Midtown", lang="kor")

        assert match.match_type == "eng_partial"
        assert match.total == 85

    async def test_korean_partial_match(self, db):
        match = await fare_service.resolve(db, "존에프케네디", "미드타운")

        assert match.match_type == "kor_partial"
        assert match.local_payment_fee == 75
        assert len(match.candidates) == 1

    async def test_english_partial_match_is_case_insensitive(self, db):
        match = await fare_service.resolve(db, "ewr", "MANHATTAN", lang="eng")

        assert match.match_type == "eng_partial"
        assert (match.reservation_fee, match.local_payment_fee) == (10, 95)

    async def test_lowest_priority_wins(self, db):
        match = await fare_service.resolve(db, "airport", "Midtown", lang="eng")

        assert match.route.departure_eng == "JFK airport"
        assert [route.priority for route in match.candidates] == [1, 3, 5]

    async def test_region_filter_applies(self, db):
        match = await fare_service.resolve(db, "EWR", "Manhattan", lang="eng", region="nj")

        assert match.match_type == "default"

    async def test_region_filter_selects_row(self, db):
        match = await fare_service.resolve(db, "EWR airport", "Jersey City", lang="eng", region="NJ")

        assert match.match_type == "exact"
        assert match.local_payment_fee == 45

    async def test_default_fare_when_nothing_matches(self, db, caplog):
        with caplog.at_level(logging.WARNING, logger="app.services.fare_service"):
            match = await fare_service.resolve(db, "서울역", "부산역")

        assert match.match_type == "default"
        assert match.is_default
        assert match.route is None
        assert (match.reservation_fee, match.local_payment_fee, match.total) == (20, 60, 80)
        assert "using default fare" in caplog.text

    async def test_configurable_default_fare(self, db):
        service = FareService(default_reservation_fee=5, default_local_payment_fee=15)

        match = await service.resolve(db, "nowhere", "anywhere")

        assert match.total == 20

    async def test_resolution_is_deterministic(self, db):
        first = await fare_service.resolve(db, "airport", "Midtown", lang="eng")
        second = await fare_service.resolve(db, "airport", "Midtown", lang="eng")

        assert (first.route.id, first.reservation_fee, first.local_payment_fee) == (
            second.route.id,
            second.reservation_fee,
            second.local_payment_fee,
        )

    async def test_inactive_rows_are_ignored(self, db):
        match = await fare_service.resolve(db, JFK_KOR, MIDTOWN_KOR)
        await catalog_service.deactivate(db, match.route.id)

        match = await fare_service.resolve(db, JFK_KOR, MIDTOWN_KOR)

        assert match.match_type == "default"


class TestPriorityTieBreak:
    async def test_oldest_row_wins_on_equal_priority(self, db):
        first = await catalog_service.create_route(db, _row(local_payment_fee=40))
        await catalog_service.create_route(db, _row(local_payment_fee=30))

        match = await fare_service.resolve(db, "NY 퀸즈", "NY 브롱스")

        assert match.route.id == first.id
        assert match.local_payment_fee == 40

    async def test_like_wildcards_are_literal(self, db):
        await catalog_service.create_route(db, _row())

        match = await fare_service.resolve(db, "%", "%")

        assert match.match_type == "default"


@pytest.mark.usefixtures("seeded_catalog")
class TestQuote:
    async def test_upgrade_fees_added(self, db):
        quote = await fare_service.quote(
            db, JFK_KOR, MIDTOWN_KOR, vehicle_types=["standard", "xl", "premium"]
        )

        assert quote.reservation_fee == 10
        assert quote.service_fee == 75
        assert quote.vehicle_upgrade_fee == 35
        assert quote.total_amount == 120
        assert quote.fare_source == "catalog"
        assert quote.currency == "USD"
        assert quote.route_id == quote.match.route.id

    async def test_default_quote(self, db):
        quote = await fare_service.quote(db, "nowhere", "anywhere", vehicle_types=["standard"])

        assert quote.as_pricing() == {
            "reservation_fee": 20,
            "service_fee": 60,
            "vehicle_upgrade_fee": 0,
            "total_amount": 80,
            "currency": "USD",
            "fare_source": "default",
        }
        assert quote.route_id is None


@pytest.mark.usefixtures("seeded_catalog")
class TestCatalogBrowsing:
    async def test_departures_are_distinct_and_sorted(self, db):
        departures = await fare_service.list_departures(db, region="ny")
        names = [d["name_kor"] for d in departures]

        assert names == sorted(set(names))
        assert JFK_KOR in names
        assert len(names) == 5

    async def test_arrivals_for_departure(self, db):
        arrivals = await fare_service.list_arrivals(db, JFK_KOR, region="NY")

        assert [a["name_eng"] for a in arrivals] == ["Manhattan Midtown", "Flushing"]
        assert all(a["is_airport"] is False for a in arrivals)

    async def test_arrivals_by_english_departure(self, db):
        arrivals = await fare_service.list_arrivals(db, "JFK airport", lang="eng")

        assert len(arrivals) == 2

    async def test_regions(self, db):
        assert await fare_service.list_regions(db) == ["CA", "NJ", "NY"]

    async def test_region_stats(self, db):
        stats = {row["region"]: row for row in await fare_service.region_stats(db)}

        assert stats["NY"]["count"] == 6
        assert stats["NY"]["airport_departures"] == 4
        assert stats["NY"]["airport_arrivals"] == 1
        assert stats["NJ"]["avg_local_payment_fee"] == 45.0
        assert stats["CA"]["count"] == 3
