import json

from scripts.import_fare_routes import load_rows

GOOD = {
    "region": "NY",
    "departure_kor": "NY 라과디아 공항",
    "departure_eng": "LGA airport",
    "departure_is_airport": "Y",
    "arrival_kor": "NY 플러싱",
    "arrival_eng": "Flushing",
    "arrival_is_airport": "N",
    "reservation_fee": 10,
    "local_payment_fee": 40,
}


class TestLoadRows:
    def test_list_payload(self, tmp_path):
        path = tmp_path / "routes.json"
        path.write_text(json.dumps([GOOD, GOOD]), encoding="utf-8")

        rows = load_rows(path)

        assert len(rows) == 2
        assert rows[0].departure_is_airport is True

    def test_items_payload_skips_invalid_rows(self, tmp_path, capsys):
        path = tmp_path / "routes.json"
        path.write_text(
            json.dumps({"items": [GOOD, {**GOOD, "reservation_fee": "free"}]}),
            encoding="utf-8",
        )

        rows = load_rows(path)

        assert len(rows) == 1
        assert "Row 2 skipped" in capsys.readouterr().err
