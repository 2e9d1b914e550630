# tests/test_concurrency.py
from concurrent.futures import ThreadPoolExecutor

import pytest

from database import tables

WORKERS = 8


def _parallel(func, items):
    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        return list(pool.map(func, items))


def test_parallel_creates_get_unique_ids(client, db):
    def create(n):
        return client.post("/api/employees", json={"first_name": f"Іван{n}", "last_name": "Петренко"})

    responses = _parallel(create, range(20))

    assert all(r.status_code == 201 for r in responses)
    ids = [r.json()["employee_id"] for r in responses]
    assert sorted(ids, key=int) == [str(n) for n in range(1, 21)]
    stored = db.load(tables.EMPLOYEES)
    assert len(stored) == 20
    assert {e["first_name"] for e in stored} == {f"Іван{n}" for n in range(20)}


def test_parallel_creates_with_same_id_conflict(client, db):
    def create(n):
        return client.post("/api/employees", json={"employee_id": "77", "first_name": f"Іван{n}", "last_name": "Б"})

    codes = sorted(r.status_code for r in _parallel(create, range(10)))

    assert codes == [201] + [409] * 9
    assert len(db.load(tables.EMPLOYEES)) == 1


def test_parallel_generation_keeps_every_document(client, db, make_employee, docx_factory):
    emp_ids = [make_employee(last_name=f"Прізвище{n}")["employee_id"] for n in range(10)]
    template_id = client.post("/api/templates", json={"template_name": "Наказ", "template_type": "наказ"}).json()["template_id"]
    client.post(
        f"/api/templates/{template_id}/upload",
        files={"file": ("t.docx", docx_factory("{last_name}"), "application/octet-stream")},
    )

    def generate(emp_id):
        return client.post(f"/api/templates/{template_id}/generate", json={"employee_id": emp_id})

    responses = _parallel(generate, emp_ids)

    assert all(r.status_code == 200 for r in responses)
    document_ids = {r.json()["document_id"] for r in responses}
    assert len(document_ids) == 10
    rows = db.load(tables.GENERATED_DOCUMENTS)
    assert {row["document_id"] for row in rows} == document_ids
    assert sorted(row["employee_id"] for row in rows) == sorted(emp_ids)


def test_locked_writes_nothing_when_block_raises(db, make_employee):
    make_employee()
    path = db.path(tables.EMPLOYEES)
    with open(path, "rb") as fh:
        before = fh.read()

    with pytest.raises(RuntimeError):
        with db.locked(tables.EMPLOYEES) as employees:
            employees[0]["last_name"] = "Змінено"
            employees.append({"employee_id": "2", "first_name": "Нова", "last_name": "Людина"})
            raise RuntimeError("interrupted")

    with open(path, "rb") as fh:
        assert fh.read() == before
    # the lock was released: another thread can take it
    with ThreadPoolExecutor(max_workers=1) as pool:
        assert pool.submit(lambda: len(db.load(tables.EMPLOYEES))).result(timeout=5) == 1
