# modules/dashboard/routes.py
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from core.templates import templates
from database.connection import CsvDatabase, get_db
from modules.common.utils import now_iso
from modules.dashboard import services

ui_router = APIRouter()
api_router = APIRouter()


# ---------- UI ----------
@ui_router.get("/", response_class=HTMLResponse)
@ui_router.get("/dashboard", response_class=HTMLResponse)
async def dashboard_page(request: Request):
    return templates.TemplateResponse(request, "dashboard.html", {"title": "Панель керування"})


# ---------- API : Health & config ----------
@api_router.get("/health")
def health_route():
    return {"status": "ok", "timestamp": now_iso()}


@api_router.get("/config")
def read_config_route(db: CsvDatabase = Depends(get_db)):
    return services.get_config(db)


# ---------- API : Dashboard ----------
@api_router.get("/dashboard/stats")
def dashboard_stats_route(db: CsvDatabase = Depends(get_db)):
    return services.get_dashboard_stats(db)


@api_router.get("/dashboard/events")
def dashboard_events_route(db: CsvDatabase = Depends(get_db)):
    return services.get_dashboard_events(db)


# ---------- API : Notifications ----------
@api_router.get("/document-expiry")
def document_expiry_route(db: CsvDatabase = Depends(get_db)):
    return services.get_document_expiry_events(db)


@api_router.get("/document-overdue")
def document_overdue_route(db: CsvDatabase = Depends(get_db)):
    return services.get_document_overdue_events(db)


@api_router.get("/birthday-events")
def birthday_events_route(db: CsvDatabase = Depends(get_db)):
    return services.get_birthday_events(db)


@api_router.get("/retirement-events")
def retirement_events_route(db: CsvDatabase = Depends(get_db)):
    return services.get_retirement_events(db)
