"""Tests for the export routes and dashboard/core/export_format.py."""

import csv
import io
import json
from datetime import date, datetime

import pytest

from dashboard.core.export_format import DETECTION_COLUMNS, normalize_records, to_csv
from tests.conftest import make_detection

RANGE = {"startDate": "2024-01-01", "endDate": "2024-01-31"}


@pytest.fixture
def seeded(db):
    make_detection(db, title="Breaking, fake", description='He said "hi"\nthen left',
                   confidence_score=0.91, detected_date=datetime(2024, 1, 3, 10, 30), is_verified=True)
    make_detection(db, title="plain", confidence_score=0.6, detected_date=datetime(2024, 1, 2, 8, 0),
                   source_platform=None, media_type="video")
    return db


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def test_csv_quotes_only_when_needed():
    out = to_csv([{"a": "Breaking, fake", "b": 'say "x"', "c": "plain"}], ["a", "b", "c"])
    assert out == 'a,b,c\n"Breaking, fake","say ""x""",plain\n'


def test_csv_nulls_bools_and_lists():
    out = to_csv([{"a": None, "b": True, "c": ["x", "y"]}], ["a", "b", "c"])
    assert out.splitlines()[1] == ',true,"[""x"", ""y""]"'


def test_csv_empty_result_is_empty_body():
    assert to_csv([], ["a", "b"]) == ""


def test_normalize_formats_dates_and_rounds_averages():
    rows = normalize_records(
        [{"detected_date": datetime(2024, 1, 2, 3, 4, 5, 678), "date": date(2024, 1, 2), "avg_confidence": 0.123456}],
        ["detected_date", "date", "avg_confidence"],
    )
    assert rows == [{"detected_date": "2024-01-02 03:04:05", "date": "2024-01-02", "avg_confidence": 0.1235}]


# ---------------------------------------------------------------------------
# GET /api/export/deepfakes
# ---------------------------------------------------------------------------


def test_export_deepfakes_csv_round_trips(client, seeded):
    response = client.get("/api/export/deepfakes", params=RANGE)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == "attachment; filename=deepfakes_2024-01-01_2024-01-31.csv"

    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert list(rows[0].keys()) == DETECTION_COLUMNS
    assert rows[0]["title"] == "Breaking, fake"
    assert rows[0]["description"] == 'He said "hi"\nthen left'
    assert rows[0]["detected_date"] == "2024-01-03 10:30:00"
    assert rows[0]["is_verified"] == "true"
    assert rows[1]["source_platform"] == ""


def test_export_deepfakes_json_matches_csv_rows(client, seeded):
    csv_rows = list(csv.DictReader(io.StringIO(client.get("/api/export/deepfakes", params=RANGE).text)))
    response = client.get("/api/export/deepfakes", params={**RANGE, "format": "json"})
    assert response.status_code == 200
    assert response.headers["content-disposition"].endswith("deepfakes_2024-01-01_2024-01-31.json")

    body = json.loads(response.text)
    assert body["period"] == {"startDate": "2024-01-01", "endDate": "2024-01-31"}
    assert body["filters"] == {"mediaType": "all", "minConfidence": 0.0}
    assert body["totalRecords"] == 2
    assert [r["id"] for r in body["data"]] == [int(r["id"]) for r in csv_rows]
    assert list(body["data"][0].keys()) == DETECTION_COLUMNS
    assert body["data"][1]["source_platform"] is None


def test_export_deepfakes_applies_filters(client, seeded):
    body = client.get("/api/export/deepfakes", params={**RANGE, "format": "json", "mediaType": "video"}).json()
    assert [r["title"] for r in body["data"]] == ["plain"]


def test_export_empty_range_csv(client, db):
    response = client.get("/api/export/deepfakes", params=RANGE)
    assert response.status_code == 200
    assert response.text == ""


def test_export_rejects_unknown_format(client):
    response = client.get("/api/export/deepfakes", params={**RANGE, "format": "xml"})
    assert response.status_code == 400
    assert response.json()["detail"].startswith("format:")


# ---------------------------------------------------------------------------
# GET /api/export/stats and /api/export/platforms
# ---------------------------------------------------------------------------


def test_export_stats_csv(client, seeded):
    response = client.get("/api/export/stats", params=RANGE)
    assert response.status_code == 200
    assert "filename=stats_2024-01-01_2024-01-31.csv" in response.headers["content-disposition"]

    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert [r["date"] for r in rows] == ["2024-01-02", "2024-01-03"]
    assert rows[0]["videos_count"] == "1"


def test_export_stats_json_envelope(client, seeded):
    body = client.get("/api/export/stats", params={**RANGE, "format": "json"}).json()
    assert body["totalDays"] == 2
    assert "exportDate" in body


def test_export_platforms_json(client, seeded):
    body = client.get("/api/export/platforms", params={**RANGE, "format": "json"}).json()
    assert body["totalPlatforms"] == 2
    assert {p["source_platform"] for p in body["data"]} == {"Twitter", None}


# ---------------------------------------------------------------------------
# Row cap
# ---------------------------------------------------------------------------


def _seed_many(db, n):
    for i in range(n):
        make_detection(db, title=f"row {i}", detected_date=datetime(2024, 1, 10, 12, i))


def test_export_uncapped_by_default(client, db):
    _seed_many(db, 5)
    response = client.get("/api/export/deepfakes", params={**RANGE, "format": "json"})

    body = response.json()
    assert body["totalRecords"] == 5
    assert body["truncated"] is False
    assert response.headers["x-export-truncated"] == "false"


def test_capped_export_is_flagged(client, db, monkeypatch):
    from dashboard.config import settings

    monkeypatch.setattr(settings, "export_max_rows", 2)
    _seed_many(db, 5)

    response = client.get("/api/export/deepfakes", params={**RANGE, "format": "json"})
    body = response.json()

    assert len(body["data"]) == 2
    assert body["totalRecords"] == 2
    assert body["truncated"] is True
    assert response.headers["x-export-truncated"] == "true"

    csv_response = client.get("/api/export/deepfakes", params=RANGE)
    assert csv_response.headers["x-export-truncated"] == "true"
    assert len(list(csv.DictReader(io.StringIO(csv_response.text)))) == 2


def test_cap_equal_to_matches_is_not_truncated(client, db, monkeypatch):
    from dashboard.config import settings

    monkeypatch.setattr(settings, "export_max_rows", 5)
    _seed_many(db, 5)

    body = client.get("/api/export/deepfakes", params={**RANGE, "format": "json"}).json()
    assert body["totalRecords"] == 5
    assert body["truncated"] is False
