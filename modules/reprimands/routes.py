# modules/reprimands/routes.py
from fastapi import APIRouter, Depends, Response, status

from database.connection import CsvDatabase, get_db
from modules.reprimands import schemas, services

api_router = APIRouter()


# ---------- API : Reprimands ----------
@api_router.get("/employees/{employee_id}/reprimands")
def read_reprimands_route(employee_id: str, db: CsvDatabase = Depends(get_db)):
    return {"reprimands": services.get_reprimands(db, employee_id)}


@api_router.post("/employees/{employee_id}/reprimands", status_code=status.HTTP_201_CREATED)
def create_reprimand_route(employee_id: str, payload: schemas.ReprimandIn, db: CsvDatabase = Depends(get_db)):
    return {"reprimand": services.create_reprimand(db, employee_id, payload)}


@api_router.put("/employees/{employee_id}/reprimands/{record_id}")
def update_reprimand_route(
    employee_id: str, record_id: str, payload: schemas.ReprimandIn, db: CsvDatabase = Depends(get_db)
):
    return {"reprimand": services.update_reprimand(db, employee_id, record_id, payload)}


@api_router.delete("/employees/{employee_id}/reprimands/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reprimand_route(employee_id: str, record_id: str, db: CsvDatabase = Depends(get_db)):
    services.delete_reprimand(db, employee_id, record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
