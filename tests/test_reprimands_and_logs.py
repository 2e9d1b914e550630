# tests/test_reprimands_and_logs.py
from database import csv_io, tables
from modules.audit_log.services import add_log


def _url(emp_id):
    return f"/api/employees/{emp_id}/reprimands"


def test_reprimand_crud(client, make_employee):
    emp_id = make_employee()["employee_id"]
    first = client.post(_url(emp_id), json={"record_date": "2023-05-01", "record_type": "Догана", "order_number": "12"})
    client.post(_url(emp_id), json={"record_date": "2024-05-01", "record_type": "Подяка"})

    assert first.status_code == 201
    record_id = first.json()["reprimand"]["record_id"]
    listed = client.get(_url(emp_id)).json()["reprimands"]
    assert [r["record_date"] for r in listed] == ["2024-05-01", "2023-05-01"]

    updated = client.put(f"{_url(emp_id)}/{record_id}", json={"record_date": "2023-05-02", "record_type": "Догана", "note": "x"})
    assert updated.json()["reprimand"]["note"] == "x"
    assert updated.json()["reprimand"]["order_number"] == ""

    assert client.delete(f"{_url(emp_id)}/{record_id}").status_code == 204
    assert len(client.get(_url(emp_id)).json()["reprimands"]) == 1


def test_reprimand_validation_and_ownership(client, make_employee):
    owner = make_employee()["employee_id"]
    other = make_employee(first_name="Інший")["employee_id"]

    assert client.post(_url(owner), json={"record_type": "Догана"}).status_code == 400
    assert client.post(_url(owner), json={"record_date": "2024-01-01"}).status_code == 400
    assert client.post(_url(owner), json={"record_date": "2024-1-1", "record_type": "Догана"}).status_code == 400
    assert client.post(_url("404"), json={"record_date": "2024-01-01", "record_type": "Догана"}).status_code == 404

    record_id = client.post(_url(owner), json={"record_date": "2024-01-01", "record_type": "Догана"}).json()["reprimand"]["record_id"]
    assert client.delete(f"{_url(other)}/{record_id}").status_code == 403
    assert client.delete(f"{_url(owner)}/999").status_code == 404


def test_logs_newest_first_with_filters(client, db):
    add_log(db, "CREATE", "1", details="a")
    add_log(db, "UPDATE", "1", details="b")
    add_log(db, "UPDATE", "2", details="c")

    data = client.get("/api/logs").json()
    assert data["total"] == 3
    assert [log["details"] for log in data["logs"]] == ["c", "b", "a"]

    filtered = client.get("/api/logs", params={"employee_id": "1", "action": "UPDATE"}).json()
    assert [log["details"] for log in filtered["logs"]] == ["b"]

    page = client.get("/api/logs", params={"offset": 1, "limit": 1}).json()
    assert [log["details"] for log in page["logs"]] == ["b"]

    assert client.get("/api/logs", params={"offset": -1}).status_code == 400


def test_logs_are_pruned(db):
    csv_io.write_csv(db.path(tables.CONFIG), tables.CONFIG_COLUMNS,
                     [{"config_key": "max_log_entries", "config_value": "3"}])
    for i in range(5):
        add_log(db, "CREATE", str(i))

    logs = db.load(tables.LOGS)
    assert [log["employee_id"] for log in logs] == ["2", "3", "4"]
    assert [log["log_id"] for log in logs] == ["3", "4", "5"]
