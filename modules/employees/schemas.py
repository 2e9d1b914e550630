# modules/employees/schemas.py
from typing import Dict, List

from pydantic import BaseModel


# -------------------------------------------------
# Employee responses (the field set comes from fields_schema.csv)
# -------------------------------------------------

class EmployeeOut(BaseModel):
    employee: Dict[str, str]


class EmployeeListOut(BaseModel):
    employees: List[Dict[str, str]]


class EmployeeCreatedOut(BaseModel):
    employee_id: str
    employee: Dict[str, str]


class StoredFileOut(BaseModel):
    path: str


# -------------------------------------------------
# CSV import
# -------------------------------------------------

class ImportRowError(BaseModel):
    row: int
    reason: str


class ImportResult(BaseModel):
    added: int
    skipped: int
    errors: List[ImportRowError]
