"""HTTP API: bet CRUD, day mutations, stats and error mapping."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from attendbet.api.main import app, get_repository, get_today
from attendbet.storage.repository import JsonBetRepository

NEW_BET = {
    "startDate": "2025-01-01",
    "endDate": "2025-01-05",
    "absenceLimit": 1,
    "entryFee": 20,
    "participants": ["A", "B"],
}


@pytest.fixture
def clock():
    return {"today": date(2025, 1, 1)}


@pytest.fixture
def client(tmp_path, clock):
    repo = JsonBetRepository(tmp_path)
    app.dependency_overrides[get_repository] = lambda: repo
    app.dependency_overrides[get_today] = lambda: clock["today"]
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def bet_id(client, clock):
    resp = client.post("/bets", json=NEW_BET)
    assert resp.status_code == 201
    clock["today"] = date(2025, 1, 10)
    return resp.json()["id"]


def _register(client, bet_id, day, b_present=False, **extra):
    body = {"date": day, "attendance": {"A": True, "B": b_present}, **extra}
    return client.post(f"/bets/{bet_id}/days", json=body)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_and_get(client, bet_id):
    body = client.get(f"/bets/{bet_id}").json()
    assert body["id"] == 1
    assert body["startDate"] == "2025-01-01"
    assert body["absenceLimit"] == 1
    assert body["participants"] == ["A", "B"]
    assert body["days"] == []


def test_list_most_recent_first(client, bet_id, clock):
    clock["today"] = date(2025, 1, 1)
    client.post("/bets", json=NEW_BET)
    assert [b["id"] for b in client.get("/bets").json()] == [2, 1]


def test_create_limit_exceeds_period(client):
    resp = client.post("/bets", json={**NEW_BET, "absenceLimit": 10})
    assert resp.status_code == 400
    assert resp.json()["code"] == "limit_exceeds_period"


def test_create_past_start(client, clock):
    clock["today"] = date(2025, 1, 2)
    resp = client.post("/bets", json=NEW_BET)
    assert resp.json()["code"] == "past_start"


def test_create_invalid_range(client):
    resp = client.post("/bets", json={**NEW_BET, "endDate": "2025-01-01"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_range"


def test_register_days_and_absences(client, bet_id):
    assert _register(client, bet_id, "2025-01-01").status_code == 200
    resp = _register(client, bet_id, "2025-01-02")
    assert [d["date"] for d in resp.json()["days"]] == ["2025-01-01", "2025-01-02"]
    body = client.get(f"/bets/{bet_id}/absences").json()
    assert body == {"betId": 1, "absenceLimit": 1, "absences": {"A": 0, "B": 2}, "overLimit": ["B"]}


def test_gap_is_reported_with_first_missing(client, bet_id):
    _register(client, bet_id, "2025-01-01")
    resp = _register(client, bet_id, "2025-01-03")
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "gap_in_sequence"
    assert body["context"]["first_missing"] == "2025-01-02"


def test_already_recorded_conflict_then_edit_flag(client, bet_id):
    _register(client, bet_id, "2025-01-01")
    resp = _register(client, bet_id, "2025-01-01", b_present=True)
    assert resp.status_code == 409
    assert resp.json()["code"] == "already_recorded"
    resp = _register(client, bet_id, "2025-01-01", b_present=True, edit=True)
    assert resp.json()["days"][0]["attendance"] == {"A": True, "B": True}


def test_out_of_range_and_future(client, bet_id, clock):
    assert _register(client, bet_id, "2025-01-06").json()["code"] == "out_of_range"
    clock["today"] = date(2025, 1, 1)
    assert _register(client, bet_id, "2025-01-02").json()["code"] == "future_date"


def test_edit_day(client, bet_id):
    _register(client, bet_id, "2025-01-01")
    resp = client.put(f"/bets/{bet_id}/days/2025-01-01", json={"attendance": {"A": False, "B": True}})
    assert resp.status_code == 200
    assert resp.json()["days"][0]["attendance"] == {"A": False, "B": True}


def test_edit_unrecorded_day_not_found(client, bet_id):
    resp = client.put(f"/bets/{bet_id}/days/2025-01-01", json={"attendance": {"A": True, "B": True}})
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


def test_invalid_attendance(client, bet_id):
    resp = client.post(f"/bets/{bet_id}/days", json={"date": "2025-01-01", "attendance": {"A": True}})
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_attendance"


def test_delete_day_allows_gap(client, bet_id):
    for d in ("2025-01-01", "2025-01-02", "2025-01-03"):
        _register(client, bet_id, d)
    resp = client.delete(f"/bets/{bet_id}/days/2025-01-02")
    assert [d["date"] for d in resp.json()["days"]] == ["2025-01-01", "2025-01-03"]
    assert client.delete(f"/bets/{bet_id}/days/2025-01-05").status_code == 200


def test_summary(client, bet_id):
    _register(client, bet_id, "2025-01-01")
    body = client.get(f"/bets/{bet_id}/summary").json()
    assert body["totalDays"] == 5
    assert body["recordedDays"] == 1
    assert body["nextDate"] == "2025-01-02"
    assert body["standings"][1] == {"participant": "B", "absences": 1, "remaining": 0, "status": "at_limit"}
    assert body["grid"][0] == {"date": "2025-01-01", "attendance": {"A": True, "B": False}}
    assert body["grid"][4]["attendance"] == {"A": None, "B": None}


def test_delete_bet(client, bet_id):
    assert client.delete(f"/bets/{bet_id}").json() == {"success": True}
    assert client.get(f"/bets/{bet_id}").status_code == 404
    assert client.delete(f"/bets/{bet_id}").json()["code"] == "not_found"


def test_unknown_bet_for_day_mutation(client):
    assert _register(client, 99, "2025-01-01").status_code == 404


def test_malformed_date_is_422(client, bet_id):
    assert _register(client, bet_id, "01/01/2025").status_code == 422


@pytest.mark.parametrize("fee", ["NaN", "inf", "-inf"])
def test_create_non_finite_fee_rejected(client, tmp_path, fee):
    resp = client.post("/bets", json={**NEW_BET, "entryFee": fee})
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_entry_fee"
    assert list(tmp_path.glob("bet-*.json")) == []


@pytest.mark.parametrize("value", [1735689600, "2025-01-01T00:00:00", "2025-01-01T00:00:00Z"])
def test_dates_on_the_wire_must_be_plain_iso(client, bet_id, value):
    assert client.post("/bets", json={**NEW_BET, "startDate": value}).status_code == 422
    body = {"date": value, "attendance": {"A": True, "B": True}}
    assert client.post(f"/bets/{bet_id}/days", json=body).status_code == 422


def test_path_date_must_be_plain_iso(client, bet_id):
    _register(client, bet_id, "2025-01-01")
    attendance = {"attendance": {"A": True, "B": True}}
    assert client.put(f"/bets/{bet_id}/days/2025-01-01T00:00:00", json=attendance).status_code == 422
    assert client.delete(f"/bets/{bet_id}/days/1735689600").status_code == 422
    assert client.put(f"/bets/{bet_id}/days/2025-01-01", json=attendance).status_code == 200
