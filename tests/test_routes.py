import os

os.environ.setdefault("EPHEMERIS_BACKEND", "moseph")

from fastapi.testclient import TestClient
from sarathi.app import app

client = TestClient(app)


def _chart_input():
    return {"date": "1990-08-18", "time": "14:32:00", "time_known": True,
            "place": {"lat": 17.385, "lon": 78.4867, "tz": "Asia/Kolkata"},
            "options": {"ayanamsha": "lahiri"}}


def test_health():
    r = client.get("/__health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_vimshottari_maha_and_antar():
    r = client.post("/v1/dashas/compute", json={"chart_input": _chart_input(), "options": {"levels": 2}})
    assert r.status_code == 200, r.text
    j = r.json()
    maha = [p for p in j["periods"] if p["level"] == 1]
    antar = [p for p in j["periods"] if p["level"] == 2]
    assert len(maha) == 9
    assert len(antar) >= 9
    starts = [p["start"] for p in maha]
    assert starts == sorted(starts)
    assert maha[0]["start"] == "1990-08-18"
    assert all(a["parent"] in {m["lord"] for m in maha} for a in antar)


def test_vimshottari_three_levels():
    r = client.post("/v1/dashas/compute", json={"chart_input": _chart_input(), "options": {"levels": 3}})
    assert r.status_code == 200, r.text
    assert any(p["level"] == 3 for p in r.json()["periods"])


def test_predict_career_window_shape():
    body = {"chart_input": _chart_input(), "category": "job",
            "options": {"start": "2025-01-01", "horizon_days": 60}}
    r = client.post("/v1/timing/predict", json=body)
    assert r.status_code == 200, r.text
    j = r.json()
    assert j["category"] == "career"
    assert j["status"] in {"ok", "no_signal"}
    assert j["horizon"] == {"start": "2025-01-01", "end": "2025-03-02", "computed_end": None}
    assert j["current_dasha"]["md"]
    for w in j["windows"]:
        assert w["from"] <= w["to"]
        assert w["strength_label"] in {"low", "medium", "high"}
        assert 7 <= w["days"] <= 35
        assert len(w["reasons"]) <= 4
    assert j["bottom_line"]["lead"]


def test_predict_with_unreachable_threshold():
    body = {"chart_input": _chart_input(), "category": "marriage",
            "options": {"start": "2025-01-01", "horizon_days": 30, "threshold": 1.0, "min_days": 30}}
    r = client.post("/v1/timing/predict", json=body)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "no_signal"
    assert r.json()["windows"] == []


def test_predict_with_dasha_override():
    body = {"chart_input": _chart_input(), "category": "vehicle",
            "options": {"start": "2025-01-01", "horizon_days": 20,
                        "dasha_override": {"lord": "Shukra", "start": "2020-01-01T00:00:00"}}}
    r = client.post("/v1/timing/predict", json=body)
    assert r.status_code == 200, r.text
    assert r.json()["current_dasha"]["md"] == "Venus"


def test_bad_timezone_is_400():
    ci = _chart_input()
    ci["place"]["tz"] = "Mars/Olympus_Mons"
    r = client.post("/v1/timing/predict", json={"chart_input": ci, "category": "health"})
    assert r.status_code == 400


def test_unknown_override_lord_is_400():
    body = {"chart_input": _chart_input(), "category": "vehicle",
            "options": {"start": "2025-01-01", "horizon_days": 20,
                        "dasha_override": {"lord": "Chiron", "start": "2020-01-01T00:00:00"}}}
    assert client.post("/v1/timing/predict", json=body).status_code == 400


def test_out_of_range_latitude_is_422():
    ci = _chart_input()
    ci["place"]["lat"] = 123.0
    r = client.post("/v1/timing/predict", json={"chart_input": ci, "category": "health"})
    assert r.status_code == 422


def test_max_days_below_step_days_is_400():
    body = {"chart_input": _chart_input(), "category": "general",
            "options": {"start": "2025-01-01", "horizon_days": 60, "threshold": 0,
                        "min_days": 1, "max_days": 3, "step_days": 7}}
    r = client.post("/v1/timing/predict", json=body)
    assert r.status_code == 400
    assert "step_days" in r.json()["detail"]


def test_sidereal_ascendant_resolved_at_ingestion():
    import datetime as dt

    from sarathi.services.angles import normalize360
    from sarathi.services.ephem import SwissEphemeris

    oracle = SwissEphemeris(ayanamsha="lahiri")
    birth = dt.datetime(1990, 8, 18, 9, 2, tzinfo=dt.timezone.utc)
    asc = oracle.sidereal_ascendant(birth, 17.385, 78.4867)
    assert 0.0 <= asc < 360.0
    tropical = oracle.ascendant(birth, 17.385, 78.4867)
    assert asc == normalize360(tropical - oracle.ayanamsa(birth))
