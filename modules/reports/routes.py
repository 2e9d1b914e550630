# modules/reports/routes.py
from typing import Optional

from fastapi import APIRouter, Depends, Response

from database.connection import CsvDatabase, get_db
from modules.reports import services

api_router = APIRouter()


# ---------- API : Reports ----------
@api_router.get("/reports/statuses")
def status_report_route(type: Optional[str] = None, db: CsvDatabase = Depends(get_db)):
    return services.get_status_report(db, type)


@api_router.get("/reports/custom")
def custom_report_route(
    filters: Optional[str] = None,
    columns: Optional[str] = None,
    db: CsvDatabase = Depends(get_db),
):
    parsed_filters = services.parse_json_param(filters, [], "filters")
    parsed_columns = services.parse_json_param(columns, None, "columns")
    return {"results": services.get_custom_report(db, parsed_filters, parsed_columns)}


# ---------- API : Export ----------
@api_router.get("/export")
def export_route(filters: Optional[str] = None, search: Optional[str] = None, db: CsvDatabase = Depends(get_db)):
    parsed_filters = services.parse_json_param(filters, {}, "filters")
    content = services.export_employees(db, parsed_filters, search)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{services.EXPORT_FILENAME}"'},
    )
