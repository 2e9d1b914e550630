# modules/status_events/services.py
import logging
from datetime import date
from typing import List, Optional

from fastapi import HTTPException, status

from database import tables
from database.connection import CsvDatabase, next_id
from database.csv_io import Row
from modules.audit_log.services import add_log
from modules.common.utils import find_by_id, index_of, now_iso
from modules.common.validators import date_field_error
from modules.field_schema.models import FieldRole, FieldSchema
from modules.status_events import schemas

logger = logging.getLogger(__name__)

OPEN_END = "9999-12-31"


# -------------------------------------------------
# Helpers
# -------------------------------------------------

def _today(today: Optional[date]) -> str:
    return (today or date.today()).isoformat()


def _get_employee_or_404(db: CsvDatabase, employee_id: str) -> Row:
    employee = find_by_id(db.load(tables.EMPLOYEES), "employee_id", employee_id)
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Співробітник не знайдено")
    return employee


def ranges_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Inclusive ISO date ranges; an empty end is open ended."""
    return start_a <= (end_b or OPEN_END) and start_b <= (end_a or OPEN_END)


def _is_active(event: Row) -> bool:
    return event.get("active", "yes") != "no"


def validate_event_input(schema: FieldSchema, payload: schemas.StatusEventIn) -> Row:
    new_status = (payload.status or "").strip()
    start_date = (payload.start_date or "").strip()
    end_date = (payload.end_date or "").strip()

    def _bad(message: str):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    if not new_status:
        _bad("Статус обов'язковий")
    options = schema.status_options
    if options and new_status not in options:
        _bad(f"Недійсний статус. Допустимі значення: {', '.join(options)}")
    if not start_date:
        _bad("Дата початку обов'язкова")
    error = date_field_error(start_date, "start_date") or date_field_error(end_date, "end_date")
    if error:
        _bad(error)
    if end_date and end_date < start_date:
        _bad("Дата закінчення не може бути раніше дати початку")
    return {"status": new_status, "start_date": start_date, "end_date": end_date}


def _check_overlap(events: List[Row], employee_id: str, values: Row, exclude_id: str = "") -> None:
    for other in events:
        if other["employee_id"] != employee_id or other["event_id"] == exclude_id or not _is_active(other):
            continue
        if ranges_overlap(values["start_date"], values["end_date"], other["start_date"], other["end_date"]):
            period = f"{other['start_date']} - {other['end_date'] or '...'}"
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Період перетинається з існуючою подією ({other['status']}, {period})",
            )


# -------------------------------------------------
# Status events
# -------------------------------------------------

def get_events_for_employee(db: CsvDatabase, employee_id: str) -> List[Row]:
    events = [e for e in db.load(tables.STATUS_EVENTS) if e["employee_id"] == employee_id and _is_active(e)]
    return sorted(events, key=lambda e: e["start_date"])


def active_event_for(events: List[Row], employee_id: str, day: str) -> Optional[Row]:
    """Event covering ``day``: start <= day and (no end or day <= end)."""
    for event in events:
        if event["employee_id"] != employee_id or not _is_active(event):
            continue
        if event["start_date"] and event["start_date"] <= day and (not event["end_date"] or day <= event["end_date"]):
            return event
    return None


def add_status_event(db: CsvDatabase, employee_id: str, payload: schemas.StatusEventIn) -> Row:
    values = validate_event_input(db.field_schema(), payload)
    with db.locked(tables.STATUS_EVENTS) as events:
        _check_overlap(events, employee_id, values)
        event = {
            "event_id": next_id(events, "event_id"),
            "employee_id": employee_id,
            **values,
            "created_at": now_iso(),
            "active": "yes",
        }
        events.append(event)
    return event


def update_status_event(db: CsvDatabase, employee_id: str, event_id: str, payload: schemas.StatusEventIn) -> Row:
    values = validate_event_input(db.field_schema(), payload)
    with db.locked(tables.STATUS_EVENTS) as events:
        index = _owned_event_index(events, employee_id, event_id)
        _check_overlap(events, employee_id, values, exclude_id=event_id)
        events[index] = {**events[index], **values}
        event = events[index]
    return event


def delete_status_event(db: CsvDatabase, employee_id: str, event_id: str) -> Row:
    with db.locked(tables.STATUS_EVENTS) as events:
        index = _owned_event_index(events, employee_id, event_id)
        event = events.pop(index)
    return event


def _owned_event_index(events: List[Row], employee_id: str, event_id: str) -> int:
    index = index_of(events, "event_id", event_id)
    if index == -1:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Подію не знайдено")
    if events[index]["employee_id"] != employee_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Подія не належить цьому співробітнику")
    return index


def delete_events_for_employee(db: CsvDatabase, employee_id: str) -> int:
    with db.locked(tables.STATUS_EVENTS) as events:
        before = len(events)
        events[:] = [e for e in events if e["employee_id"] != employee_id]
        return before - len(events)


# -------------------------------------------------
# Status history
# -------------------------------------------------

def add_status_history_entries(db: CsvDatabase, entries: List[Row]) -> None:
    if not entries:
        return
    changed_at = now_iso()
    with db.locked(tables.STATUS_HISTORY) as rows:
        for entry in entries:
            rows.append({
                **entry,
                "history_id": next_id(rows, "history_id"),
                "changed_at": changed_at,
            })


def history_entry(schema: FieldSchema, employee_id: str, old: Row, new: Row, changed_by: str) -> Row:
    status_field = schema.name_for(FieldRole.STATUS)
    start_field = schema.name_for(FieldRole.STATUS_START)
    end_field = schema.name_for(FieldRole.STATUS_END)
    return {
        "employee_id": employee_id,
        "old_status": old.get(status_field, "") if status_field else "",
        "new_status": new.get(status_field, "") if status_field else "",
        "old_start_date": old.get(start_field, "") if start_field else "",
        "old_end_date": old.get(end_field, "") if end_field else "",
        "new_start_date": new.get(start_field, "") if start_field else "",
        "new_end_date": new.get(end_field, "") if end_field else "",
        "changed_by": changed_by,
    }


def get_status_history(db: CsvDatabase, employee_id: str) -> List[Row]:
    _get_employee_or_404(db, employee_id)
    history = [h for h in db.load(tables.STATUS_HISTORY) if h["employee_id"] == employee_id]
    return sorted(history, key=lambda h: (h["changed_at"], int(h["history_id"] or 0)), reverse=True)


def delete_history_for_employee(db: CsvDatabase, employee_id: str) -> int:
    with db.locked(tables.STATUS_HISTORY) as rows:
        before = len(rows)
        rows[:] = [h for h in rows if h["employee_id"] != employee_id]
        return before - len(rows)


# -------------------------------------------------
# Synchronization
# -------------------------------------------------

def _target_status(schema: FieldSchema, employee: Row, events: List[Row], today: str, force_reset: bool) -> Optional[tuple]:
    status_field = schema.name_for(FieldRole.STATUS)
    start_field = schema.name_for(FieldRole.STATUS_START)
    end_field = schema.name_for(FieldRole.STATUS_END)
    if not status_field:
        return None

    current = (
        employee.get(status_field, ""),
        employee.get(start_field, "") if start_field else "",
        employee.get(end_field, "") if end_field else "",
    )
    active = active_event_for(events, employee["employee_id"], today)
    if active:
        target = (active["status"], active["start_date"], active["end_date"])
    else:
        if schema.dismissed_status and current[0] == schema.dismissed_status:
            return None
        expired = bool(current[2]) and current[2] < today
        if not (expired or force_reset):
            return None
        target = (schema.working_status, "", "")
    return None if target == current else target


def _sync_rows(db: CsvDatabase, employees: List[Row], only_id: Optional[str], today: str, force_reset: bool) -> List[Row]:
    schema = db.field_schema()
    events = [e for e in db.load(tables.STATUS_EVENTS) if _is_active(e)]
    status_field = schema.name_for(FieldRole.STATUS)
    start_field = schema.name_for(FieldRole.STATUS_START)
    end_field = schema.name_for(FieldRole.STATUS_END)

    history = []
    for i, employee in enumerate(employees):
        if only_id is not None and employee["employee_id"] != only_id:
            continue
        target = _target_status(schema, employee, events, today, force_reset)
        if target is None:
            continue
        updated = dict(employee)
        updated[status_field] = target[0]
        if start_field:
            updated[start_field] = target[1]
        if end_field:
            updated[end_field] = target[2]
        employees[i] = updated
        history.append(history_entry(schema, employee["employee_id"], employee, updated, "system"))
    return history


def sync_employee_status(db: CsvDatabase, employee_id: str, today: Optional[date] = None, force_reset: bool = False) -> Optional[Row]:
    """Apply the event active today to one employee; returns the stored employee."""
    day = _today(today)
    with db.locked(tables.EMPLOYEES) as employees:
        history = _sync_rows(db, employees, employee_id, day, force_reset)
        employee = find_by_id(employees, "employee_id", employee_id)
    if history:
        add_status_history_entries(db, history)
        logger.info("Status of employee %s synced to %r", employee_id, history[0]["new_status"])
    return employee


def sync_all_status_events(db: CsvDatabase, today: Optional[date] = None) -> int:
    day = _today(today)
    with db.locked(tables.EMPLOYEES) as employees:
        history = _sync_rows(db, employees, None, day, False)
    if history:
        add_status_history_entries(db, history)
        logger.info("Status sync updated %d employee(s)", len(history))
    return len(history)


# -------------------------------------------------
# Route level operations
# -------------------------------------------------

def create_event_for_employee(db: CsvDatabase, employee_id: str, payload: schemas.StatusEventIn) -> dict:
    employee = _get_employee_or_404(db, employee_id)
    event = add_status_event(db, employee_id, payload)
    updated = sync_employee_status(db, employee_id)
    name = db.field_schema().employee_name(employee)
    add_log(db, "CREATE", employee_id, name, "status_event", "", event["event_id"],
            f"Додано подію статусу: {event['status']} з {event['start_date']}")
    return {"event": event, "employee": updated}


def update_event_for_employee(db: CsvDatabase, employee_id: str, event_id: str, payload: schemas.StatusEventIn) -> dict:
    employee = _get_employee_or_404(db, employee_id)
    event = update_status_event(db, employee_id, event_id, payload)
    updated = sync_employee_status(db, employee_id)
    name = db.field_schema().employee_name(employee)
    add_log(db, "UPDATE", employee_id, name, "status_event", event_id, event_id,
            f"Оновлено подію статусу: {event['status']} з {event['start_date']}")
    return {"event": event, "employee": updated}


def delete_event_for_employee(db: CsvDatabase, employee_id: str, event_id: str) -> None:
    employee = _get_employee_or_404(db, employee_id)
    event = delete_status_event(db, employee_id, event_id)
    sync_employee_status(db, employee_id, force_reset=True)
    name = db.field_schema().employee_name(employee)
    add_log(db, "DELETE", employee_id, name, "status_event", event_id, "",
            f"Видалено подію статусу: {event['status']} з {event['start_date']}")


def list_events_for_employee(db: CsvDatabase, employee_id: str) -> List[Row]:
    _get_employee_or_404(db, employee_id)
    return get_events_for_employee(db, employee_id)
