from __future__ import annotations

from datetime import date, timedelta

import pytest

from hostel_attendance.main import create_app


@pytest.fixture
def client(world, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=world.container)
    return app.test_client()


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_mark_accepts_then_rejects_duplicate(world, client):
    world.add_person(1)

    first = client.post("/api/attendance/mark", json={"personId": 1, "type": "IN"})
    second = client.post("/api/attendance/mark", json={"personId": 1, "type": "in"})

    assert first.status_code == 201
    assert first.get_json()["state"] == "IN"
    assert second.status_code == 409
    assert second.get_json()["reason"] == "DUPLICATE_STATE"
    assert second.get_json()["message"] == "Already IN"


def test_mark_validation_errors(world, client):
    world.add_person(1)

    assert client.post("/api/attendance/mark", json={"personId": 1, "type": "UP"}).status_code == 400
    assert client.post("/api/attendance/mark", json={"personId": "x", "type": "IN"}).status_code == 400
    assert client.post("/api/attendance/mark", json={"personId": 42, "type": "IN"}).status_code == 404


def test_leave_conflict_and_resolutions(world, client):
    world.add_person(1)
    today = date.today()
    world.add_leave(5, 1, today - timedelta(days=1), today + timedelta(days=1))

    conflict = client.post("/api/attendance/mark", json={"personId": 1, "type": "IN"})
    cancelled = client.post(
        "/api/attendance/mark", json={"personId": 1, "type": "IN", "resolution": {"action": "cancel"}}
    )
    overridden = client.post(
        "/api/attendance/mark",
        json={"personId": 1, "type": "IN", "resolution": {"action": "override", "reason": "Exam"}},
    )

    assert conflict.status_code == 409
    assert conflict.get_json()["result"] == "LEAVE_CONFLICT"
    assert conflict.get_json()["leave"]["id"] == 5
    assert cancelled.status_code == 200
    assert overridden.status_code == 201
    assert overridden.get_json()["event"]["overrideLeaveId"] == 5


def test_check_leave(world, client):
    world.add_person(1)
    world.add_leave(5, 1, date(2024, 3, 1), date(2024, 3, 10))

    body = client.get("/api/attendance/check-leave/1?date=2024-03-04").get_json()

    assert body["onLeave"] is True
    assert body["leave"]["id"] == 5
    assert client.get("/api/attendance/check-leave/1?date=March").status_code == 400


def test_unmapped_scan_goes_to_reconciliation(world, client):
    response = client.post("/api/attendance/scan", json={"rawId": "FP-77", "deviceId": "gate-1"})

    assert response.status_code == 201
    listed = client.get("/api/attendance/reconciliation").get_json()
    assert listed["count"] == 1
    assert listed["records"][0]["issues"][0]["type"] == "UNMAPPED_SCAN"


def test_reconcile_endpoint(world, client):
    world.add_person(1)
    client.post("/api/attendance/bulk", json={"date": date.today().isoformat(), "items": [{"personId": 1, "type": "IN"}]})
    event_id = client.get("/api/attendance/reconciliation").get_json()["records"][0]["id"]

    empty = client.put(f"/api/attendance/{event_id}/reconcile", json={"notes": ""})
    missing = client.put("/api/attendance/9999/reconcile", json={"notes": "ok"})
    done = client.put(
        f"/api/attendance/{event_id}/reconcile", json={"notes": "Seen at gate"}, headers={"X-Actor": "warden"}
    )

    assert empty.status_code == 400
    assert missing.status_code == 404
    assert done.status_code == 200
    assert done.get_json()["record"]["reconciledBy"] == "warden"


def test_bulk_endpoint_rejects_empty_items(client):
    response = client.post("/api/attendance/bulk", json={"date": "2024-03-04", "items": []})

    assert response.status_code == 400


def test_bulk_csv_upload(world, client):
    world.add_person(1)

    response = client.post(
        "/api/attendance/bulk/csv?date=2024-03-04",
        data="person_id,type\n1,IN\nx,IN\n",
        content_type="text/csv",
    )

    body = response.get_json()
    assert response.status_code == 200
    assert body["inserted"] == 1
    assert body["errors"][0]["reason"].startswith("INVALID_ROW")


def test_settings_endpoints(client):
    updated = client.put("/api/attendance/settings", json={"autoMarkTime": "22:30", "lateThresholdMinutes": 5})
    bad_time = client.put("/api/attendance/settings", json={"autoMarkTime": "late"})
    unknown = client.put("/api/attendance/settings", json={"colour": "blue"})

    assert updated.status_code == 200
    assert updated.get_json()["settings"]["autoMarkTime"] == "22:30"
    assert client.get("/api/attendance/settings").get_json()["settings"]["lateThresholdMinutes"] == 5
    assert bad_time.status_code == 400
    assert unknown.status_code == 400


def test_day_counts_need_reconciled_events(world, client):
    world.add_person(1)
    today = date.today().isoformat()
    client.post("/api/attendance/bulk", json={"date": today, "items": [{"personId": 1, "type": "IN"}]})

    response = client.get(f"/api/attendance/day-counts/1?from={today}&to={today}")

    assert response.status_code == 409
    assert len(response.get_json()["eventIds"]) == 1


def test_auto_mark_endpoint(world, client):
    world.add_person(1)

    single = client.post("/api/attendance/auto-mark", json={"date": "2024-03-04"})
    ranged = client.post("/api/attendance/auto-mark", json={"from": "2024-03-04", "to": "2024-03-05"})

    assert single.status_code == 200
    assert single.get_json()["present"] == 1
    assert ranged.get_json()["totals"]["alreadyMarked"] == 1
    assert ranged.get_json()["totals"]["present"] == 1


def test_state_endpoints(world, client):
    world.add_person(1)
    client.post("/api/attendance/mark", json={"personId": 1, "type": "IN"})

    state = client.get("/api/persons/1/state").get_json()
    reset = client.post("/api/attendance/states/reset-all", json={"state": "OUT", "reason": "Term start"})
    drift = client.get("/api/attendance/state-consistency").get_json()

    assert state["person"]["state"] == "IN"
    assert state["drift"] is None
    assert reset.get_json()["updated"] == 1
    assert [d["personId"] for d in drift["issues"]] == [1]


def test_api_token_is_enforced(world, client):
    client.application.config["API_TOKEN"] = "s3cret"

    assert client.get("/api/attendance/settings").status_code == 401
    assert client.get("/api/attendance/settings", headers={"X-Api-Key": "s3cret"}).status_code == 200
