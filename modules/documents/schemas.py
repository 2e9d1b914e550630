# modules/documents/schemas.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict


# -------------------------------------------------
# Template Schemas
# -------------------------------------------------

class TemplateIn(BaseModel):
    """Create/update body; required values are checked in services."""
    template_name: Optional[str] = None
    template_type: Optional[str] = None
    description: Optional[str] = None
    is_general: Optional[str | bool] = None
    model_config = ConfigDict(extra="ignore")


class TemplateOut(BaseModel):
    template_id: str
    template_name: str
    template_type: str
    docx_filename: str
    placeholder_fields: str
    description: str
    created_date: str
    active: str
    is_general: str


class TemplateCreatedOut(BaseModel):
    template_id: str
    template: TemplateOut


class TemplateUploadOut(BaseModel):
    filename: str
    placeholders: List[str]


# -------------------------------------------------
# Generation / Document Schemas
# -------------------------------------------------

class GenerateIn(BaseModel):
    employee_id: Optional[str] = None
    model_config = ConfigDict(extra="ignore")


class GenerateOut(BaseModel):
    document_id: str
    filename: str
    download_url: str


class DocumentOut(BaseModel):
    document_id: str
    template_id: str
    template_name: str
    employee_id: str
    employee_name: str
    docx_filename: str
    generation_date: str
    generated_by: str


class DocumentListOut(BaseModel):
    documents: List[DocumentOut]
    total: int
    offset: int
    limit: int


class PlaceholderOut(BaseModel):
    placeholder: str
    label: str
    value: str
    group: str


class PlaceholderPreviewOut(BaseModel):
    employee_id: str
    employee_name: str
    placeholders: List[PlaceholderOut]
