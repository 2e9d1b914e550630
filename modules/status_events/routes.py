# modules/status_events/routes.py
from fastapi import APIRouter, Depends, Response, status

from database.connection import CsvDatabase, get_db
from modules.status_events import schemas, services

api_router = APIRouter()


# ---------- API : Status events ----------
@api_router.get("/employees/{employee_id}/status-events")
def read_status_events_route(employee_id: str, db: CsvDatabase = Depends(get_db)):
    return {"events": services.list_events_for_employee(db, employee_id)}


@api_router.post("/employees/{employee_id}/status-events", status_code=status.HTTP_201_CREATED)
def create_status_event_route(employee_id: str, payload: schemas.StatusEventIn, db: CsvDatabase = Depends(get_db)):
    return services.create_event_for_employee(db, employee_id, payload)


@api_router.put("/employees/{employee_id}/status-events/{event_id}")
def update_status_event_route(
    employee_id: str, event_id: str, payload: schemas.StatusEventIn, db: CsvDatabase = Depends(get_db)
):
    return services.update_event_for_employee(db, employee_id, event_id, payload)


@api_router.delete("/employees/{employee_id}/status-events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_status_event_route(employee_id: str, event_id: str, db: CsvDatabase = Depends(get_db)):
    services.delete_event_for_employee(db, employee_id, event_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- API : Status history ----------
@api_router.get("/employees/{employee_id}/status-history")
def read_status_history_route(employee_id: str, db: CsvDatabase = Depends(get_db)):
    return {"history": services.get_status_history(db, employee_id)}
