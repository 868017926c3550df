"""
Plan Skeleton API Tests

Exercises the HTTP layer end to end with the reference marathon athlete.
"""

from fastapi.testclient import TestClient

from runplan.main import app


client = TestClient(app)

PROFILE = {
    "baseline_weekly_km": 30,
    "longest_recent_run_km": 14,
    "easy_pace_min_per_km": [6.0, 6.6],
    "estimated_vdot": 42,
}


def _marathon_body(**overrides):
    body = {
        "goal_type": "marathon",
        "race_date": "2026-04-26",
        "preferred_days": ["tue", "wed", "thu", "sat", "sun"],
        "days_per_week": 5,
        "long_run_day": "sun",
        "profile": PROFILE,
        "today": "2026-01-05",
    }
    body.update(overrides)
    return body


def test_health_reports_rules_loaded():
    resp = client.get("/health")
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["rules_loaded"] is True


def test_create_marathon_skeleton():
    resp = client.post("/v2/plans/skeleton", json=_marathon_body())
    assert resp.status_code == 200, resp.text
    body = resp.json()

    weeks = body["skeleton"]["weeks"]
    assert len(weeks) == 16
    assert weeks[-1]["days"][6]["workout_type"] == "race"
    assert body["validation"]["passed"] is True
    assert body["accepted_errors"] == []
    assert body["conflicts"] is None
    assert isinstance(body["realism"], list)


def test_short_marathon_rejected():
    resp = client.post("/v2/plans/skeleton", json=_marathon_body(race_date="2026-02-15"))
    assert resp.status_code == 422, resp.text
    error = resp.json()["error"]

    assert error["code"] == "PLAN_REJECTED"
    assert any("Only 6 weeks" in reason for reason in error["reasons"])


def test_short_marathon_accepted_with_warnings():
    resp = client.post(
        "/v2/plans/skeleton",
        json=_marathon_body(race_date="2026-02-15", accept_warnings=True),
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()

    assert len(body["skeleton"]["weeks"]) == 6
    assert body["accepted_errors"], "Accepted hard errors are echoed back"
    assert body["validation"]["passed"] is False


def test_low_baseline_rejected():
    profile = dict(PROFILE, baseline_weekly_km=10)
    resp = client.post("/v2/plans/skeleton", json=_marathon_body(profile=profile))
    assert resp.status_code == 422, resp.text
    assert any("too low" in r for r in resp.json()["error"]["reasons"])


def test_two_goal_request_returns_conflicts():
    body = _marathon_body(goals=[
        {"goal_type": "marathon", "race_date": "2026-04-26", "priority": "primary"},
        {"goal_type": "half_marathon", "race_date": "2026-03-22", "priority": "secondary"},
    ])
    resp = client.post("/v2/plans/skeleton", json=body)
    assert resp.status_code == 200, resp.text

    conflicts = resp.json()["conflicts"]
    assert conflicts["mode"] == "training_race"


def test_validate_round_trip():
    created = client.post("/v2/plans/skeleton", json=_marathon_body()).json()
    resp = client.post(
        "/v2/plans/skeleton/validate",
        json={"skeleton": created["skeleton"], "profile": PROFILE},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()

    assert len(body["skeleton"]["weeks"]) == 16
    assert body["validation"]["corrections"] == [], "An already corrected skeleton needs no changes"


def test_validate_rejects_malformed_skeleton():
    resp = client.post("/v2/plans/skeleton/validate", json={"skeleton": {}})
    assert resp.status_code == 422, resp.text
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR_SKELETON"


def test_conflicts_same_date():
    resp = client.post("/v2/plans/conflicts", json={
        "goals": [
            {"goal_type": "marathon", "race_date": "2026-04-26"},
            {"goal_type": "half_marathon", "race_date": "2026-04-26"},
        ],
        "today": "2026-01-05",
    })
    assert resp.status_code == 200, resp.text
    body = resp.json()

    assert body["start_date"] == "2026-01-05"
    assert body["mode"] == "single"
    assert [c["type"] for c in body["conflicts"]] == ["same_date"]
