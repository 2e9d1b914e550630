# tests/test_status_events.py
from datetime import date

import pytest

from database import tables
from modules.status_events.services import (
    active_event_for,
    ranges_overlap,
    sync_all_status_events,
    sync_employee_status,
)


def _events_url(emp_id):
    return f"/api/employees/{emp_id}/status-events"


def test_ranges_overlap():
    assert ranges_overlap("2024-01-01", "2024-01-10", "2024-01-10", "2024-01-20")
    assert not ranges_overlap("2024-01-01", "2024-01-09", "2024-01-10", "2024-01-20")
    assert ranges_overlap("2024-01-01", "", "2030-01-01", "2030-01-02")
    assert not ranges_overlap("2024-02-01", "", "2024-01-01", "2024-01-31")


def test_active_event_for():
    events = [
        {"employee_id": "1", "start_date": "2024-01-01", "end_date": "2024-01-05", "active": "yes"},
        {"employee_id": "1", "start_date": "2024-02-01", "end_date": "", "active": "yes"},
    ]

    assert active_event_for(events, "1", "2024-01-05")["start_date"] == "2024-01-01"
    assert active_event_for(events, "1", "2024-01-06") is None
    assert active_event_for(events, "1", "2099-01-01")["start_date"] == "2024-02-01"
    assert active_event_for(events, "2", "2024-01-03") is None


@pytest.mark.parametrize("payload, message", [
    ({"start_date": "2024-01-01"}, "Статус обов'язковий"),
    ({"status": "Відпочинок", "start_date": "2024-01-01"}, "Недійсний статус"),
    ({"status": "Відпустка"}, "Дата початку обов'язкова"),
    ({"status": "Відпустка", "start_date": "2024-01-10", "end_date": "2024-01-01"}, "Дата закінчення"),
    ({"status": "Відпустка", "start_date": "2024-02-30"}, "start_date"),
])
def test_event_validation(client, make_employee, payload, message):
    emp_id = make_employee()["employee_id"]
    response = client.post(_events_url(emp_id), json=payload)

    assert response.status_code == 400
    assert message in response.json()["detail"]


def test_active_event_applies_to_employee(client, db, make_employee):
    emp_id = make_employee(employment_status="Працює")["employee_id"]
    response = client.post(_events_url(emp_id), json={"status": "Лікарняний", "start_date": "2000-01-01"})

    assert response.status_code == 201
    body = response.json()
    assert body["event"]["event_id"] == "1"
    assert body["employee"]["employment_status"] == "Лікарняний"
    assert body["employee"]["status_start_date"] == "2000-01-01"

    history = client.get(f"/api/employees/{emp_id}/status-history").json()["history"]
    assert history[0]["changed_by"] == "system"
    assert history[0]["old_status"] == "Працює"
    assert any(log["details"].startswith("Додано подію статусу") for log in db.load(tables.LOGS))


def test_overlap_conflict(client, make_employee):
    emp_id = make_employee()["employee_id"]
    client.post(_events_url(emp_id), json={"status": "Відпустка", "start_date": "2030-01-01", "end_date": "2030-01-10"})

    overlap = client.post(_events_url(emp_id), json={"status": "Відрядження", "start_date": "2030-01-10"})
    touching = client.post(
        _events_url(emp_id), json={"status": "Відрядження", "start_date": "2030-01-11", "end_date": "2030-01-12"}
    )

    assert overlap.status_code == 409
    assert touching.status_code == 201
    events = client.get(_events_url(emp_id)).json()["events"]
    assert [e["start_date"] for e in events] == ["2030-01-01", "2030-01-11"]


def test_update_excludes_itself_from_overlap(client, make_employee):
    emp_id = make_employee()["employee_id"]
    event = client.post(
        _events_url(emp_id), json={"status": "Відпустка", "start_date": "2030-01-01", "end_date": "2030-01-10"}
    ).json()["event"]

    response = client.put(
        f"{_events_url(emp_id)}/{event['event_id']}",
        json={"status": "Відпустка", "start_date": "2030-01-02", "end_date": "2030-01-12"},
    )

    assert response.status_code == 200
    assert response.json()["event"]["end_date"] == "2030-01-12"


def test_event_ownership(client, make_employee):
    owner = make_employee()["employee_id"]
    other = make_employee(first_name="Інший")["employee_id"]
    event = client.post(_events_url(owner), json={"status": "Відпустка", "start_date": "2030-01-01"}).json()["event"]

    assert client.delete(f"{_events_url(other)}/{event['event_id']}").status_code == 403
    assert client.delete(f"{_events_url(owner)}/999").status_code == 404
    assert client.put(
        f"{_events_url(other)}/{event['event_id']}", json={"status": "Відпустка", "start_date": "2030-01-01"}
    ).status_code == 403


def test_delete_event_resets_status(client, make_employee):
    emp_id = make_employee(employment_status="Працює")["employee_id"]
    event = client.post(_events_url(emp_id), json={"status": "Відпустка", "start_date": "2000-01-01"}).json()["event"]

    response = client.delete(f"{_events_url(emp_id)}/{event['event_id']}")

    assert response.status_code == 204
    employee = client.get(f"/api/employees/{emp_id}").json()["employee"]
    assert employee["employment_status"] == "Працює"
    assert employee["status_start_date"] == ""


def test_expired_status_returns_to_working(db, make_employee):
    emp_id = make_employee(
        employment_status="Відрядження", status_start_date="2024-01-01", status_end_date="2024-01-31"
    )["employee_id"]

    unchanged = sync_employee_status(db, emp_id, today=date(2024, 1, 31))
    assert unchanged["employment_status"] == "Відрядження"

    employee = sync_employee_status(db, emp_id, today=date(2024, 2, 1))
    assert employee["employment_status"] == "Працює"
    assert employee["status_end_date"] == ""


def test_dismissed_employee_is_not_reset(db, make_employee):
    emp_id = make_employee(employment_status="Звільнений", status_end_date="2024-01-31")["employee_id"]

    employee = sync_employee_status(db, emp_id, today=date(2024, 6, 1), force_reset=True)

    assert employee["employment_status"] == "Звільнений"


def test_sync_all(db, make_employee):
    make_employee(employment_status="Відпустка", status_end_date="2024-01-31")
    make_employee(employment_status="Працює")

    assert sync_all_status_events(db, today=date(2024, 3, 1)) == 1
    assert sync_all_status_events(db, today=date(2024, 3, 1)) == 0
    assert len(db.load(tables.STATUS_HISTORY)) == 1


def test_sync_without_changes_leaves_file_alone(client, db, make_employee, monkeypatch):
    emp_id = make_employee(employment_status="Відпустка", status_end_date="2024-01-31")["employee_id"]
    working_id = make_employee(employment_status="Працює")["employee_id"]
    saved = []
    monkeypatch.setattr(db, "save", lambda table, rows: saved.append(table))

    sync_employee_status(db, emp_id, today=date(2024, 1, 15))
    assert sync_all_status_events(db, today=date(2024, 1, 15)) == 0
    assert client.get(f"/api/employees/{working_id}").status_code == 200

    assert saved == []
