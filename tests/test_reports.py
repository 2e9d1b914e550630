# tests/test_reports.py
import json
from datetime import date

from modules.reports import services


def test_status_report(db, make_employee):
    make_employee(last_name="Зараз", employment_status="Відпустка", status_start_date="2024-06-10", status_end_date="2024-06-20")
    make_employee(last_name="Пізніше", employment_status="Відрядження", status_start_date="2024-06-25", status_end_date="2024-07-05")
    make_employee(last_name="Працює", employment_status="Працює")
    make_employee(last_name="Звільнений", employment_status="Звільнений")
    today = date(2024, 6, 15)

    current = services.get_status_report(db, "current", today=today)
    month = services.get_status_report(db, "month", today=today)

    assert [r["name"] for r in current] == ["Зараз Іван"]
    assert current[0]["status_type"] == "Відпустка"
    assert {r["name"] for r in month} == {"Зараз Іван", "Пізніше Іван"}


def test_status_report_requires_type(client):
    assert client.get("/api/reports/statuses").status_code == 400
    assert client.get("/api/reports/statuses", params={"type": "year"}).status_code == 400
    assert client.get("/api/reports/statuses", params={"type": "month"}).json() == []


def test_custom_report(client, make_employee):
    make_employee(last_name="Коваль", grade="3", department="ІТ")
    make_employee(last_name="Бойко", grade="10", department="")
    make_employee(last_name="Мельник", grade="7", department="Бухгалтерія")

    def run(filters, columns=None):
        params = {"filters": json.dumps(filters)}
        if columns is not None:
            params["columns"] = json.dumps(columns)
        response = client.get("/api/reports/custom", params=params)
        assert response.status_code == 200, response.text
        return response.json()["results"]

    assert [r["last_name"] for r in run([{"field": "grade", "condition": "greater_than", "value": "5"}])] == ["Бойко", "Мельник"]
    assert [r["last_name"] for r in run([{"field": "department", "condition": "empty"}])] == ["Бойко"]
    assert [r["last_name"] for r in run([{"field": "last_name", "condition": "contains", "value": "кова"}])] == ["Коваль"]
    assert len(run([{"field": "department", "condition": "not_equals", "value": "іт"}])) == 2
    both = run([
        {"field": "department", "condition": "not_empty"},
        {"field": "grade", "condition": "less_than", "value": "5"},
    ])
    assert [r["last_name"] for r in both] == ["Коваль"]

    narrowed = run([], columns=["last_name"])
    assert narrowed[0] == {"employee_id": "1", "last_name": "Коваль"}


def test_custom_report_bad_json(client):
    assert client.get("/api/reports/custom", params={"filters": "{oops"}).status_code == 400
    assert client.get("/api/reports/custom", params={"columns": "[1,"}).status_code == 400
    bad_condition = json.dumps([{"field": "grade", "condition": "between"}])
    assert client.get("/api/reports/custom", params={"filters": bad_condition}).status_code == 400


def test_export_csv(client, db, make_employee):
    make_employee(last_name="Коваль", department="ІТ")
    make_employee(last_name="Бойко", department="Бухгалтерія")
    make_employee(last_name="Мельник", department="ІТ")

    response = client.get("/api/export", params={"filters": json.dumps({"department": ["ІТ"]}), "search": "мельн"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "employees_export.csv" in response.headers["content-disposition"]
    lines = response.content.decode("utf-8-sig").split("\r\n")
    assert lines[0].split(";") == db.field_schema().employee_columns
    assert len([line for line in lines[1:] if line]) == 1
    assert "Мельник" in lines[1]

    assert client.get("/api/export", params={"filters": "nope"}).status_code == 400
