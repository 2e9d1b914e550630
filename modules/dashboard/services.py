# modules/dashboard/services.py
from datetime import date, timedelta
from typing import Dict, List, Optional

from database import tables
from database.connection import CsvDatabase
from database.csv_io import Row
from modules.common.validators import add_years, parse_date
from modules.field_schema.models import EXPIRY_SUFFIX, FieldRole, FieldSchema
from modules.status_events.services import sync_all_status_events


def _window(db: CsvDatabase) -> int:
    return int(db.load_config()["notification_window_days"])


def _birth_date(schema: FieldSchema, employee: Row) -> Optional[date]:
    field = schema.name_for(FieldRole.BIRTH_DATE)
    return parse_date(employee.get(field)) if field else None


# -------------------------------------------------
# Stats
# -------------------------------------------------

def get_dashboard_stats(db: CsvDatabase) -> dict:
    schema = db.field_schema()
    employees = db.load(tables.EMPLOYEES)
    status_field = schema.name_for(FieldRole.STATUS)
    options = schema.status_options

    counts = {option: 0 for option in options}
    other = 0
    for employee in employees:
        value = employee.get(status_field, "") if status_field else ""
        if value in counts:
            counts[value] += 1
        else:
            other += 1
    return {
        "total": len(employees),
        "statusCounts": [{"label": label, "count": count} for label, count in counts.items()],
        "other": other,
    }


# -------------------------------------------------
# Status start/end events
# -------------------------------------------------

def get_dashboard_events(db: CsvDatabase, today: Optional[date] = None) -> dict:
    """Status periods starting or ending today and within the notification window."""
    today = today or date.today()
    sync_all_status_events(db, today)

    schema = db.field_schema()
    status_field = schema.name_for(FieldRole.STATUS)
    start_field = schema.name_for(FieldRole.STATUS_START)
    end_field = schema.name_for(FieldRole.STATUS_END)
    horizon = today + timedelta(days=_window(db))

    today_events: List[dict] = []
    upcoming: List[dict] = []
    for employee in db.load(tables.EMPLOYEES):
        for event_type, field in (("status_start", start_field), ("status_end", end_field)):
            day = parse_date(employee.get(field)) if field else None
            if day is None or day < today or day > horizon:
                continue
            event = {
                "employee_id": employee["employee_id"],
                "name": schema.employee_name(employee),
                "type": event_type,
                "status_type": employee.get(status_field, "") if status_field else "",
                "date": day.isoformat(),
                "end_date": employee.get(end_field, "") if end_field else "",
            }
            (today_events if day == today else upcoming).append(event)
    upcoming.sort(key=lambda e: e["date"])
    return {"today": today_events, "thisWeek": upcoming}


# -------------------------------------------------
# Document expiry
# -------------------------------------------------

def _document_events(db: CsvDatabase):
    schema = db.field_schema()
    for employee in db.load(tables.EMPLOYEES):
        for doc_field in schema.document_fields:
            expiry = parse_date(employee.get(doc_field + EXPIRY_SUFFIX))
            if expiry is None:
                continue
            yield expiry, {
                "employee_id": employee["employee_id"],
                "name": schema.employee_name(employee),
                "document_field": doc_field,
                "document_name": schema.label_for(doc_field),
                "expiry_date": expiry.isoformat(),
                "file": employee.get(doc_field, ""),
            }


def get_document_expiry_events(db: CsvDatabase, today: Optional[date] = None) -> dict:
    today = today or date.today()
    horizon = today + timedelta(days=_window(db))
    today_events, upcoming = [], []
    for expiry, event in _document_events(db):
        if expiry == today:
            today_events.append({**event, "type": "expiring_today"})
        elif today < expiry <= horizon:
            upcoming.append({**event, "type": "expiring_soon"})
    upcoming.sort(key=lambda e: e["expiry_date"])
    return {"today": today_events, "thisWeek": upcoming}


def get_document_overdue_events(db: CsvDatabase, today: Optional[date] = None) -> dict:
    today = today or date.today()
    overdue = [
        {**event, "type": "overdue", "days_overdue": (today - expiry).days}
        for expiry, event in _document_events(db)
        if expiry < today
    ]
    overdue.sort(key=lambda e: e["expiry_date"])
    return {"overdue": overdue}


# -------------------------------------------------
# Birthdays and retirement
# -------------------------------------------------

def _next_birthday(birth: date, today: date) -> date:
    candidate = add_years(birth, today.year - birth.year)
    if candidate < today:
        candidate = add_years(birth, today.year + 1 - birth.year)
    return candidate


def get_birthday_events(db: CsvDatabase, today: Optional[date] = None) -> dict:
    today = today or date.today()
    horizon = today + timedelta(days=_window(db))
    schema = db.field_schema()
    today_events, upcoming = [], []
    for employee in db.load(tables.EMPLOYEES):
        birth = _birth_date(schema, employee)
        if birth is None or birth > today:
            continue
        birthday = _next_birthday(birth, today)
        if birthday > horizon:
            continue
        event = {
            "employee_id": employee["employee_id"],
            "employee_name": schema.employee_name(employee),
            "birth_date": birth.isoformat(),
            "current_year_birthday": birthday.isoformat(),
            "age": birthday.year - birth.year,
            "days_until": (birthday - today).days,
        }
        (today_events if birthday == today else upcoming).append(event)
    upcoming.sort(key=lambda e: e["current_year_birthday"])
    return {"today": today_events, "next30Days": upcoming}


def get_retirement_events(db: CsvDatabase, today: Optional[date] = None) -> dict:
    today = today or date.today()
    age = int(db.load_config()["retirement_age_years"])
    schema = db.field_schema()
    today_events, this_month = [], []
    for employee in db.load(tables.EMPLOYEES):
        birth = _birth_date(schema, employee)
        if birth is None:
            continue
        retirement = add_years(birth, age)
        if (retirement.year, retirement.month) != (today.year, today.month):
            continue
        event = {
            "employee_id": employee["employee_id"],
            "employee_name": schema.employee_name(employee),
            "birth_date": birth.isoformat(),
            "retirement_date": retirement.isoformat(),
            "age": age,
        }
        (today_events if retirement == today else this_month).append(event)
    this_month.sort(key=lambda e: e["retirement_date"])
    return {"today": today_events, "thisMonth": this_month}


def get_config(db: CsvDatabase) -> Dict[str, object]:
    return db.load_config()
