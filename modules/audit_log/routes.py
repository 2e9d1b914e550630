# modules/audit_log/routes.py
from typing import Optional

from fastapi import APIRouter, Depends

from database.connection import CsvDatabase, get_db
from modules.audit_log import schemas, services

api_router = APIRouter()


# ---------- API : Audit log ----------
@api_router.get("/logs", response_model=schemas.LogListOut)
def read_logs_route(
    employee_id: Optional[str] = None,
    action: Optional[str] = None,
    offset: Optional[int] = None,
    limit: Optional[int] = None,
    db: CsvDatabase = Depends(get_db),
):
    return services.get_logs(db, employee_id=employee_id, action=action, offset=offset, limit=limit)
