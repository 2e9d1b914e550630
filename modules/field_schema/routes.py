# modules/field_schema/routes.py
from fastapi import APIRouter, Depends

from database.connection import CsvDatabase, get_db
from modules.field_schema import services

api_router = APIRouter()


# ---------- API : Field schema ----------
@api_router.get("/fields-schema")
def read_fields_schema_route(db: CsvDatabase = Depends(get_db)):
    return services.get_fields_schema(db)
