# modules/reports/services.py
import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

from database import csv_io, tables
from database.connection import CsvDatabase
from database.csv_io import Row
from modules.common.validators import parse_date
from modules.employees.services import matches_search
from modules.field_schema.models import FieldRole

logger = logging.getLogger(__name__)

REPORT_TYPES = ("current", "month")
CONDITIONS = (
    "contains",
    "not_contains",
    "equals",
    "not_equals",
    "empty",
    "not_empty",
    "greater_than",
    "less_than",
)
EXPORT_FILENAME = "employees_export.csv"


def parse_json_param(raw: Optional[str], default: Any, label: str) -> Any:
    if raw is None or raw == "":
        return default
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Invalid %s JSON: %r", label, raw)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Невірний JSON у параметрі {label}")


# -------------------------------------------------
# Status report
# -------------------------------------------------

def get_status_report(db: CsvDatabase, report_type: Optional[str], today: Optional[date] = None) -> List[dict]:
    """
    Employees with a special status (neither working nor dismissed).

    ``current``: the status period covers today.
    ``month``: the status period overlaps the current calendar month.
    An empty start date counts as open in the past, an empty end date as open in the future.
    """
    if report_type not in REPORT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Параметр "type" має бути "current" або "month"',
        )
    today = today or date.today()
    schema = db.field_schema()
    status_field = schema.name_for(FieldRole.STATUS)
    start_field = schema.name_for(FieldRole.STATUS_START)
    end_field = schema.name_for(FieldRole.STATUS_END)
    if not status_field:
        return []

    if report_type == "current":
        period_start = period_end = today
    else:
        period_start = today.replace(day=1)
        next_month = date(today.year + (today.month == 12), today.month % 12 + 1, 1)
        period_end = date.fromordinal(next_month.toordinal() - 1)

    skip = {"", schema.working_status, schema.dismissed_status}
    report = []
    for employee in db.load(tables.EMPLOYEES):
        status_value = employee.get(status_field, "")
        if status_value in skip:
            continue
        start = parse_date(employee.get(start_field)) if start_field else None
        end = parse_date(employee.get(end_field)) if end_field else None
        if start and start > period_end:
            continue
        if end and end < period_start:
            continue
        report.append({
            "employee_id": employee["employee_id"],
            "name": schema.employee_name(employee),
            "status_type": status_value,
            "start_date": employee.get(start_field, "") if start_field else "",
            "end_date": employee.get(end_field, "") if end_field else "",
        })
    report.sort(key=lambda item: item["name"])
    return report


# -------------------------------------------------
# Custom report
# -------------------------------------------------

def _as_number(value: str) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _compare(left: str, right: str) -> int:
    left_num, right_num = _as_number(left), _as_number(right)
    if left_num is not None and right_num is not None:
        return (left_num > right_num) - (left_num < right_num)
    return (left > right) - (left < right)


def matches_filter(employee: Row, flt: Dict[str, Any]) -> bool:
    field = str(flt.get("field") or "")
    condition = str(flt.get("condition") or "")
    expected = str(flt.get("value") if flt.get("value") is not None else "").strip()
    actual = str(employee.get(field, "") or "")

    if condition == "empty":
        return actual == ""
    if condition == "not_empty":
        return actual != ""
    if condition == "contains":
        return expected.lower() in actual.lower()
    if condition == "not_contains":
        return expected.lower() not in actual.lower()
    if condition == "equals":
        return actual.lower() == expected.lower()
    if condition == "not_equals":
        return actual.lower() != expected.lower()
    if condition == "greater_than":
        return actual != "" and _compare(actual, expected) > 0
    if condition == "less_than":
        return actual != "" and _compare(actual, expected) < 0
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"Невідома умова фільтра: {condition}",
    )


def get_custom_report(db: CsvDatabase, filters: Any, columns: Any) -> List[Row]:
    if not isinstance(filters, list) or not all(isinstance(f, dict) for f in filters):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Фільтри мають бути списком")
    if columns is not None and not isinstance(columns, list):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Колонки мають бути списком")
    for flt in filters:
        if flt.get("condition") not in CONDITIONS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Невідома умова фільтра: {flt.get('condition')}",
            )

    employees = [e for e in db.load(tables.EMPLOYEES) if all(matches_filter(e, f) for f in filters)]
    if not columns:
        return employees

    # employee_id always travels along so the client can link rows
    selected = ["employee_id"] + [str(c) for c in columns if str(c) != "employee_id"]
    return [{column: employee.get(column, "") for column in selected} for employee in employees]


# -------------------------------------------------
# Export
# -------------------------------------------------

def filter_for_export(employees: List[Row], filters: Dict[str, Any], search: str) -> List[Row]:
    result = employees
    for field, wanted in filters.items():
        if wanted in (None, "", []):
            continue
        allowed = {str(v) for v in wanted} if isinstance(wanted, list) else {str(wanted)}
        result = [e for e in result if e.get(field, "") in allowed]
    if search:
        result = [e for e in result if matches_search(e, search)]
    return result


def export_employees(db: CsvDatabase, filters: Any, search: Optional[str]) -> bytes:
    if not isinstance(filters, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Фільтри мають бути об'єктом")
    columns = db.columns(tables.EMPLOYEES)
    rows = filter_for_export(db.load(tables.EMPLOYEES), filters, (search or "").strip())
    logger.info("Exporting %d employees", len(rows))
    return csv_io.to_csv_bytes(columns, rows)
