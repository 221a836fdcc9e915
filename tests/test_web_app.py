#!/usr/bin/env python3
"""Tests for the Flask JSON API."""

import shutil
from pathlib import Path

import pytest
import yaml

from web.app import app

EXAMPLE = Path(__file__).parent.parent / "records" / "example.yaml"


@pytest.fixture
def records_file(tmp_path):
    path = tmp_path / "fleet.yaml"
    shutil.copy(EXAMPLE, path)
    return path


@pytest.fixture
def client(records_file, monkeypatch):
    monkeypatch.setitem(app.config, "RECORDS_FILE", records_file)
    monkeypatch.setitem(app.config, "AUDIT_FILE", None)
    monkeypatch.setitem(app.config, "MIRROR_FILES", [])
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def row_of(path, row_index):
    with open(path) as fp:
        rows = yaml.safe_load(fp)["records"]
    return next(row for row in rows if row["rowIndex"] == row_index)


class TestReadEndpoints:
    """Tests for baselines, anomalies and summary."""

    def test_baselines(self, client):
        data = client.get("/baselines").get_json()
        assert [b["vehicleCode"] for b in data] == ["CM-010", "EC-003"]
        assert data[0]["averageInterval"] == pytest.approx(286.67, abs=0.01)
        assert data[1]["category"] == "equipment"
        assert data[1]["recordCount"] == 4

    def test_anomalies(self, client):
        data = client.get("/anomalies").get_json()
        assert [a["rowIndex"] for a in data] == [6, 10, 9]
        assert data[0]["severity"] == "high"
        assert data[0]["suggestedCorrection"] is None
        fix = data[1]["suggestedCorrection"]
        assert fix["field"] == "current"
        assert fix["oldValue"] == 12545.0
        assert fix["proposedValue"] == 1254.5
        assert fix["correctionMethod"] == "current_extra_digit"

    def test_anomalies_filtered(self, client):
        data = client.get("/anomalies?severity=medium").get_json()
        assert [a["issueKind"] for a in data] == ["zero_previous"]
        data = client.get("/anomalies?vehicle=CM-010").get_json()
        assert [a["rowIndex"] for a in data] == [6]
        data = client.get("/anomalies?range=period&start=01/01/2025&end=14/01/2025").get_json()
        assert [a["rowIndex"] for a in data] == [10, 9]

    def test_bad_filters(self, client):
        assert client.get("/anomalies?severity=urgent").status_code == 400
        assert client.get("/anomalies?range=decade").status_code == 400

    def test_summary(self, client):
        assert client.get("/summary").get_json() == {
            "total": 3,
            "high": 2,
            "medium": 1,
            "low": 0,
            "fixable": 2,
        }


class TestFixEndpoint:
    """Tests for POST /anomalies/<row>/fix."""

    def test_requires_applied_by(self, client):
        assert client.post("/anomalies/10/fix", json={}).status_code == 400
        assert client.post("/anomalies/10/fix", json={"appliedBy": "  "}).status_code == 400

    def test_applies_suggestion(self, client, records_file):
        response = client.post("/anomalies/10/fix", json={"appliedBy": "maria"})
        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] and data["audited"]
        assert data["field"] == "horimeter_current"
        assert data["newValue"] == 1254.5
        assert row_of(records_file, 10)["horimeterCurrent"] == 1254.5

        # Fixed rows drop out of the next snapshot
        assert client.post("/anomalies/10/fix", json={"appliedBy": "maria"}).status_code == 404

    def test_no_suggestion(self, client):
        assert client.post("/anomalies/6/fix", json={"appliedBy": "maria"}).status_code == 409

    def test_not_flagged(self, client):
        assert client.post("/anomalies/7/fix", json={"appliedBy": "maria"}).status_code == 404


class TestEditEndpoint:
    """Tests for POST /anomalies/<row>/edit."""

    def test_manual_correction(self, client, records_file):
        body = {"field": "current", "value": 46420, "appliedBy": "maria", "notes": "pump log"}
        response = client.post("/anomalies/6/edit", json=body)
        assert response.status_code == 200
        assert row_of(records_file, 6)["kmCurrent"] == 46420.0

        (entry,) = client.get("/audit").get_json()
        assert entry["source"] == "manual"
        assert entry["notes"] == "pump log"

    def test_bad_requests(self, client):
        assert client.post("/anomalies/6/edit", json={"field": "current", "value": 1}).status_code == 400
        assert client.post(
            "/anomalies/6/edit", json={"field": "odometer", "value": 1, "appliedBy": "maria"}
        ).status_code == 400
        assert client.post(
            "/anomalies/6/edit", json={"field": "current", "value": "abc", "appliedBy": "maria"}
        ).status_code == 400

    def test_unknown_row(self, client):
        body = {"field": "current", "value": 1, "appliedBy": "maria"}
        assert client.post("/anomalies/99/edit", json=body).status_code == 404


class TestFixAllEndpoint:
    """Tests for POST /anomalies/fix-all."""

    def test_applies_all(self, client):
        data = client.post("/anomalies/fix-all", json={"appliedBy": "maria"}).get_json()
        assert data["total"] == 2
        assert data["fixed"] == 2
        assert data["errors"] == 0
        assert client.get("/summary").get_json()["total"] == 1

    def test_requires_applied_by(self, client):
        assert client.post("/anomalies/fix-all").status_code == 400


class TestAuditEndpoint:
    """Tests for GET /audit."""

    def test_empty(self, client):
        assert client.get("/audit").get_json() == []

    def test_lists_newest_first(self, client):
        client.post("/anomalies/10/fix", json={"appliedBy": "maria"})
        client.post("/anomalies/9/fix", json={"appliedBy": "joao"})

        data = client.get("/audit").get_json()
        assert [e["appliedBy"] for e in data] == ["joao", "maria"]
        assert client.get("/audit?limit=1").get_json()[0]["appliedBy"] == "joao"
        assert client.get("/audit?vehicle=CM-010").get_json() == []

    def test_bad_limit(self, client):
        assert client.get("/audit?limit=ten").status_code == 400


class TestInvalidSettings:
    """Bad settings in the records file give a JSON error."""

    @pytest.mark.parametrize("settings", ["maxPlausibleInterval:", "maxInterval: 500"])
    def test_every_route_reports_the_error(self, client, records_file, settings):
        records_file.write_text(f"settings:\n  {settings}\nrecords: []\n")
        for path in ("/baselines", "/anomalies", "/summary"):
            response = client.get(path)
            assert response.status_code == 500
            assert "error" in response.get_json()


class TestAppConfig:
    """Tests for module-level app setup."""

    def test_no_session_secret(self):
        # JSON only: no flash messages or cookie sessions
        assert app.secret_key is None
