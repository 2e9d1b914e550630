# modules/reprimands/services.py
from typing import List

from fastapi import HTTPException, status

from database import tables
from database.connection import CsvDatabase, next_id
from database.csv_io import Row
from modules.audit_log.services import add_log
from modules.common.utils import find_by_id, index_of, now_iso
from modules.common.validators import require, validate_date_field
from modules.reprimands import schemas


def _get_employee_or_404(db: CsvDatabase, employee_id: str) -> Row:
    employee = find_by_id(db.load(tables.EMPLOYEES), "employee_id", employee_id)
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Співробітник не знайдено")
    return employee


def _clean(payload: schemas.ReprimandIn) -> Row:
    record_date = require(payload.record_date, "Дата запису обов'язкова")
    validate_date_field(record_date, "record_date")
    record_type = require(payload.record_type, "Тип запису обов'язковий")
    return {
        "record_date": record_date,
        "record_type": record_type,
        "order_number": (payload.order_number or "").strip(),
        "note": (payload.note or "").strip(),
    }


def _owned_index(rows: List[Row], employee_id: str, record_id: str) -> int:
    index = index_of(rows, "record_id", record_id)
    if index == -1:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Запис не знайдено")
    if rows[index]["employee_id"] != employee_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Запис не належить цьому співробітнику")
    return index


def get_reprimands(db: CsvDatabase, employee_id: str) -> List[Row]:
    _get_employee_or_404(db, employee_id)
    records = [r for r in db.load(tables.REPRIMANDS) if r["employee_id"] == employee_id]
    return sorted(records, key=lambda r: r["record_date"], reverse=True)


def create_reprimand(db: CsvDatabase, employee_id: str, payload: schemas.ReprimandIn) -> Row:
    employee = _get_employee_or_404(db, employee_id)
    values = _clean(payload)
    with db.locked(tables.REPRIMANDS) as rows:
        record = {
            "record_id": next_id(rows, "record_id"),
            "employee_id": employee_id,
            **values,
            "created_at": now_iso(),
        }
        rows.append(record)
    name = db.field_schema().employee_name(employee)
    add_log(db, "CREATE", employee_id, name, "reprimand", "", record["record_id"],
            f"Додано запис: {record['record_type']}")
    return record


def update_reprimand(db: CsvDatabase, employee_id: str, record_id: str, payload: schemas.ReprimandIn) -> Row:
    employee = _get_employee_or_404(db, employee_id)
    values = _clean(payload)
    with db.locked(tables.REPRIMANDS) as rows:
        index = _owned_index(rows, employee_id, record_id)
        rows[index] = {**rows[index], **values}
        record = rows[index]
    name = db.field_schema().employee_name(employee)
    add_log(db, "UPDATE", employee_id, name, "reprimand", record_id, record_id,
            f"Оновлено запис: {record['record_type']}")
    return record


def delete_reprimand(db: CsvDatabase, employee_id: str, record_id: str) -> None:
    employee = _get_employee_or_404(db, employee_id)
    with db.locked(tables.REPRIMANDS) as rows:
        record = rows.pop(_owned_index(rows, employee_id, record_id))
    name = db.field_schema().employee_name(employee)
    add_log(db, "DELETE", employee_id, name, "reprimand", record_id, "",
            f"Видалено запис: {record['record_type']}")


def delete_reprimands_for_employee(db: CsvDatabase, employee_id: str) -> int:
    with db.locked(tables.REPRIMANDS) as rows:
        before = len(rows)
        rows[:] = [r for r in rows if r["employee_id"] != employee_id]
        return before - len(rows)
