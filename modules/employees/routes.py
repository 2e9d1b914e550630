# modules/employees/routes.py
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Response, UploadFile, status
from fastapi.responses import FileResponse

from database.connection import CsvDatabase, get_db
from modules.employees import schemas, services

api_router = APIRouter()


# ---------- API : Employees ----------
@api_router.get("/employees", response_model=schemas.EmployeeListOut)
def read_employees_route(search: Optional[str] = None, db: CsvDatabase = Depends(get_db)):
    return {"employees": services.get_employees(db, search=search)}


@api_router.post("/employees/import", response_model=schemas.ImportResult)
def import_employees_route(file: Optional[UploadFile] = File(None), db: CsvDatabase = Depends(get_db)):
    return services.import_employees(db, file)


@api_router.get("/employees/{employee_id}", response_model=schemas.EmployeeOut)
def read_employee_route(employee_id: str, db: CsvDatabase = Depends(get_db)):
    return {"employee": services.get_employee(db, employee_id)}


@api_router.post("/employees", response_model=schemas.EmployeeCreatedOut, status_code=status.HTTP_201_CREATED)
def create_employee_route(payload: Dict[str, Any] = Body(default={}), db: CsvDatabase = Depends(get_db)):
    return services.create_employee(db, payload)


@api_router.put("/employees/{employee_id}", response_model=schemas.EmployeeOut)
def update_employee_route(employee_id: str, payload: Dict[str, Any] = Body(default={}), db: CsvDatabase = Depends(get_db)):
    return {"employee": services.update_employee(db, employee_id, payload)}


@api_router.delete("/employees/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee_route(employee_id: str, db: CsvDatabase = Depends(get_db)):
    services.delete_employee(db, employee_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- API : Employee files ----------
@api_router.post("/employees/{employee_id}/files", response_model=schemas.StoredFileOut)
def upload_employee_file_route(
    employee_id: str,
    file: Optional[UploadFile] = File(None),
    file_field: str = Form(""),
    issue_date: str = Form(""),
    expiry_date: str = Form(""),
    db: CsvDatabase = Depends(get_db),
):
    return services.upload_document(db, employee_id, file, file_field, issue_date, expiry_date)


@api_router.delete("/employees/{employee_id}/files/{field_name}", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee_file_route(employee_id: str, field_name: str, db: CsvDatabase = Depends(get_db)):
    services.delete_document(db, employee_id, field_name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@api_router.post("/employees/{employee_id}/photo", response_model=schemas.StoredFileOut)
def upload_employee_photo_route(
    employee_id: str, photo: Optional[UploadFile] = File(None), db: CsvDatabase = Depends(get_db)
):
    return services.upload_photo(db, employee_id, photo)


@api_router.delete("/employees/{employee_id}/photo", status_code=status.HTTP_204_NO_CONTENT)
def delete_employee_photo_route(employee_id: str, db: CsvDatabase = Depends(get_db)):
    services.delete_photo(db, employee_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- API : Import sample & search ----------
@api_router.get("/download/import-template")
def download_import_template_route(db: CsvDatabase = Depends(get_db)):
    services.sync_import_template(db)
    return FileResponse(
        services.import_sample_path(db),
        media_type="text/csv",
        filename=services.IMPORT_SAMPLE_NAME,
    )


@api_router.get("/search")
def global_search_route(q: Optional[str] = None, db: CsvDatabase = Depends(get_db)):
    return services.global_search(db, q)
