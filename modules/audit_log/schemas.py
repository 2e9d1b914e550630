# modules/audit_log/schemas.py
from typing import List

from pydantic import BaseModel, ConfigDict


class LogEntryCreate(BaseModel):
    action: str
    employee_id: str = ""
    employee_name: str = ""
    field_name: str = ""
    old_value: str = ""
    new_value: str = ""
    details: str = ""


class LogEntryOut(LogEntryCreate):
    log_id: str
    timestamp: str
    model_config = ConfigDict(extra="ignore")


class LogListOut(BaseModel):
    logs: List[LogEntryOut]
    total: int
