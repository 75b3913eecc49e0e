"""HTTP tests for the Zi Wei endpoints (real lunar-python conversion)."""

from __future__ import annotations

import json
import logging

from fastapi.testclient import TestClient

from api.app import app


client = TestClient(app)

PAYLOAD = {
    "name": "Chen",
    "gender": "M",
    "year": 1990,
    "month": 5,
    "day": 15,
    "hour": 14,
    "minute": 30,
    "calendarType": "solar",
}


def test_health():
    resp = client.get("/__health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_compute_chart() -> None:
    resp = client.post("/v1/ziwei/compute", json=PAYLOAD)
    assert resp.status_code == 200
    data = resp.json()
    assert data["chart_id"].startswith("zw_")
    snap = data["snapshot"]
    assert snap["errors"] == {}
    assert snap["lunar"]["lunar_year"] == 1990
    assert snap["indices"]["time_index"] == 7
    assert snap["meta"]["birthdate"] == "1990-05-15"
    assert len(snap["derived"]["palaces"]) == 12
    assert len(snap["derived"]["palace_list"]) == 12
    assert snap["derived"]["ming_palace"]["index"] == 10
    assert snap["derived"]["nayin"]["name"] == "土五局"
    for section in ("palaces", "primary_stars", "secondary_stars", "mutations", "minor_stars", "attributes", "life_cycles", "brightness"):
        assert section in snap["sections"]


def test_compute_is_stable_across_calls():
    first = client.post("/v1/ziwei/compute", json=PAYLOAD).json()
    second = client.post("/v1/ziwei/compute", json=PAYLOAD).json()
    assert first["chart_id"] == second["chart_id"]
    assert first["snapshot"]["sections"] == second["snapshot"]["sections"]


def test_compute_rejects_invalid_input():
    resp = client.post("/v1/ziwei/compute", json={**PAYLOAD, "year": 1899, "gender": "Q"})
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["kind"] == "INPUT_VALIDATION_FAILED"
    assert set(detail["context"]["errors"]) == {"year", "gender"}


def test_normalize_endpoint():
    resp = client.post("/v1/ziwei/normalize", json={**PAYLOAD, "month": "05", "day": "15"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["strings"] == {"birthdate": "1990-05-15", "birthtime": "14:30"}
    assert data["indices"]["year_stem_index"] == 6
    assert data["meta"]["gender"] == "M"


def test_lunar_input_without_record_is_422():
    resp = client.post("/v1/ziwei/normalize", json={**PAYLOAD, "calendarType": "lunar"})
    assert resp.status_code == 422
    assert resp.json()["detail"]["kind"] == "LUNAR_MISSING"


def test_bad_lunar_record_is_422():
    lunar = {"lunar_year": 1990, "lunar_month": 4, "lunar_day": 21, "time_index": 12}
    resp = client.post("/v1/ziwei/compute", json={**PAYLOAD, "calendarType": "lunar", "lunar": lunar})
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["kind"] == "INPUT_VALIDATION_FAILED"
    assert "lunar.time_index" in detail["context"]["errors"]


def test_impossible_solar_date_is_422():
    resp = client.post("/v1/ziwei/normalize", json={**PAYLOAD, "month": 2, "day": 30})
    assert resp.status_code == 422
    assert resp.json()["detail"]["kind"] == "LUNAR_CONVERSION_FAILED"


def test_decade_overlay_endpoint():
    resp = client.post("/v1/ziwei/overlay/decade", json={"chart_input": PAYLOAD, "cycle_index": 0})
    assert resp.status_code == 200
    data = resp.json()
    assert data["palace_index"] == 10
    assert data["age_range"] == "5-14"
    assert "大昌" in data["stars"]


def test_decade_overlay_rejects_bad_cycle():
    resp = client.post("/v1/ziwei/overlay/decade", json={"chart_input": PAYLOAD, "cycle_index": 12})
    assert resp.status_code == 422


def test_annual_overlay_endpoint():
    resp = client.post("/v1/ziwei/overlay/annual", json={"chart_input": PAYLOAD, "year": 2024})
    assert resp.status_code == 200
    data = resp.json()
    assert data["stem"] == "甲"
    assert data["branch_index"] == 4


def test_constants_endpoint():
    resp = client.get("/v1/ziwei/constants")
    assert resp.status_code == 200
    data = resp.json()
    assert data["grid"][0] == [5, 6, 7, 8]
    assert len(data["tri_square"]) == 12
    assert data["stems"][0] == "甲"
    assert "ziChange" in data["options"]["zi_hour_handling"]
    assert "interpretation_4" in data["options"]["stem_interpretations"]["庚"]


def test_access_log_line_when_enabled(monkeypatch, caplog):
    monkeypatch.setenv("LOGGING_ENABLED", "true")
    caplog.set_level(logging.INFO, logger="api.access")
    resp = client.get("/__health")
    assert resp.status_code == 200
    lines = [json.loads(r.getMessage()) for r in caplog.records if r.name == "api.access"]
    assert len(lines) == 1
    assert lines[0]["method"] == "GET"
    assert lines[0]["endpoint"] == "/__health"
    assert lines[0]["status"] == 200
    assert lines[0]["latency_ms"] >= 0


def test_access_log_silent_by_default(monkeypatch, caplog):
    monkeypatch.delenv("LOGGING_ENABLED", raising=False)
    caplog.set_level(logging.INFO, logger="api.access")
    client.get("/__health")
    assert not [r for r in caplog.records if r.name == "api.access"]
