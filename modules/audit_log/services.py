# modules/audit_log/services.py
import logging
from typing import Iterable, List, Optional

from database import tables
from database.connection import CsvDatabase, next_id
from modules.audit_log import schemas
from modules.common.utils import now_iso, validate_pagination

logger = logging.getLogger(__name__)


def add_logs(db: CsvDatabase, entries: Iterable[schemas.LogEntryCreate]) -> List[dict]:
    """
    Append entries with sequential ids in one write, then keep only the
    newest ``max_log_entries`` rows.
    """
    entries = list(entries)
    if not entries:
        return []
    max_entries = int(db.load_config()["max_log_entries"])
    timestamp = now_iso()
    created = []
    with db.locked(tables.LOGS) as rows:
        for entry in entries:
            row = {"log_id": next_id(rows, "log_id"), "timestamp": timestamp, **entry.model_dump()}
            rows.append(row)
            created.append(row)
        if len(rows) > max_entries:
            del rows[: len(rows) - max_entries]
    return created


def add_log(
    db: CsvDatabase,
    action: str,
    employee_id: str = "",
    employee_name: str = "",
    field_name: str = "",
    old_value: str = "",
    new_value: str = "",
    details: str = "",
) -> dict:
    entry = schemas.LogEntryCreate(
        action=action,
        employee_id=employee_id,
        employee_name=employee_name,
        field_name=field_name,
        old_value=old_value,
        new_value=new_value,
        details=details,
    )
    return add_logs(db, [entry])[0]


def _sort_key(row: dict):
    log_id = row.get("log_id", "")
    return row.get("timestamp", ""), int(log_id) if log_id.isdigit() else 0


def get_logs(
    db: CsvDatabase,
    employee_id: Optional[str] = None,
    action: Optional[str] = None,
    offset: Optional[int] = None,
    limit: Optional[int] = None,
) -> dict:
    offset, limit = validate_pagination(offset, limit)
    logs = db.load(tables.LOGS)
    if employee_id:
        logs = [log for log in logs if log["employee_id"] == employee_id]
    if action:
        logs = [log for log in logs if log["action"] == action]
    logs.sort(key=_sort_key, reverse=True)
    return {"logs": logs[offset: offset + limit], "total": len(logs)}
