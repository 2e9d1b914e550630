# modules/documents/routes.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from fastapi.responses import FileResponse

from database.connection import CsvDatabase, get_db
from modules.documents import schemas, services

api_router = APIRouter()

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


# ---------- API : Templates ----------
@api_router.get("/templates")
def read_templates_route(db: CsvDatabase = Depends(get_db)):
    return {"templates": services.get_templates(db)}


@api_router.get("/templates/{template_id}")
def read_template_route(template_id: str, db: CsvDatabase = Depends(get_db)):
    return {"template": services.get_template(db, template_id)}


@api_router.post("/templates", response_model=schemas.TemplateCreatedOut, status_code=status.HTTP_201_CREATED)
def create_template_route(payload: schemas.TemplateIn, db: CsvDatabase = Depends(get_db)):
    return services.create_template(db, payload)


@api_router.put("/templates/{template_id}")
def update_template_route(template_id: str, payload: schemas.TemplateIn, db: CsvDatabase = Depends(get_db)):
    return {"template": services.update_template(db, template_id, payload)}


@api_router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template_route(template_id: str, db: CsvDatabase = Depends(get_db)):
    services.delete_template(db, template_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@api_router.post("/templates/{template_id}/upload", response_model=schemas.TemplateUploadOut)
def upload_template_file_route(
    template_id: str, file: Optional[UploadFile] = File(None), db: CsvDatabase = Depends(get_db)
):
    return services.upload_template_file(db, template_id, file)


@api_router.post("/templates/{template_id}/reextract")
def reextract_template_route(template_id: str, db: CsvDatabase = Depends(get_db)):
    return services.reextract_placeholders(db, template_id)


@api_router.post("/templates/{template_id}/generate", response_model=schemas.GenerateOut)
def generate_document_route(
    template_id: str, payload: Optional[schemas.GenerateIn] = None, db: CsvDatabase = Depends(get_db)
):
    return services.generate_document(db, template_id, payload or schemas.GenerateIn())


# ---------- API : Generated documents ----------
@api_router.get("/documents", response_model=schemas.DocumentListOut)
def read_documents_route(
    template_id: Optional[str] = None,
    employee_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    offset: Optional[int] = None,
    limit: Optional[int] = None,
    db: CsvDatabase = Depends(get_db),
):
    return services.get_documents(
        db,
        template_id=template_id,
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        offset=offset,
        limit=limit,
    )


@api_router.get("/documents/{document_id}/download")
def download_document_route(document_id: str, db: CsvDatabase = Depends(get_db)):
    path, filename = services.document_file(db, document_id)
    return FileResponse(path, media_type=DOCX_MEDIA_TYPE, filename=filename)


# ---------- API : Placeholder preview ----------
@api_router.get("/placeholder-preview", response_model=schemas.PlaceholderPreviewOut)
def placeholder_preview_route(db: CsvDatabase = Depends(get_db)):
    return services.placeholder_preview(db)


@api_router.get("/placeholder-preview/{employee_id}", response_model=schemas.PlaceholderPreviewOut)
def placeholder_preview_for_employee_route(employee_id: str, db: CsvDatabase = Depends(get_db)):
    return services.placeholder_preview(db, employee_id)
