# main.py
import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from config.settings import settings
from core.templates import templates
from database.connection import storage

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("hr_records")

# ----- App instance -----
app = FastAPI(title="HR Employee Records API", version="1.0.0")

# ----- Middlewares -----
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----- Error handlers -----
@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Невірні дані запиту") if errors else "Невірні дані запиту"
    return JSONResponse(status_code=400, content={"detail": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Внутрішня помилка сервера"})


# ----- Static & Templates -----
app.mount("/files", StaticFiles(directory=storage.files_dir, check_dir=False), name="files")
app.state.templates = templates

# ----- Routers -----
from modules.audit_log import routes as audit_log_routes
from modules.dashboard import routes as dashboard_routes
from modules.documents import routes as documents_routes
from modules.employees import routes as employees_routes
from modules.field_schema import routes as field_schema_routes
from modules.reports import routes as reports_routes
from modules.reprimands import routes as reprimands_routes
from modules.status_events import routes as status_events_routes
from modules.status_events import scheduler as status_scheduler

app.include_router(dashboard_routes.api_router, prefix="/api", tags=["Dashboard API"])
app.include_router(field_schema_routes.api_router, prefix="/api", tags=["Field Schema API"])
app.include_router(employees_routes.api_router, prefix="/api", tags=["Employees API"])
app.include_router(status_events_routes.api_router, prefix="/api", tags=["Status Events API"])
app.include_router(reprimands_routes.api_router, prefix="/api", tags=["Reprimands API"])
app.include_router(documents_routes.api_router, prefix="/api", tags=["Documents API"])
app.include_router(reports_routes.api_router, prefix="/api", tags=["Reports API"])
app.include_router(audit_log_routes.api_router, prefix="/api", tags=["Audit Log API"])

app.include_router(dashboard_routes.ui_router, include_in_schema=False)


# ----- Startup / shutdown -----
@app.on_event("startup")
def on_startup():
    storage.init_storage()
    synced = status_scheduler.run_status_sync()
    logger.info("Startup status sync updated %d employee(s)", synced)
    status_scheduler.start()


@app.on_event("shutdown")
def on_shutdown():
    status_scheduler.shutdown()


# ----- Entrypoint -----
if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=3000, reload=True)
