# modules/documents/services.py
import json
import logging
import os
import re
import time
import zipfile
from datetime import date, datetime, time as dt_time
from typing import Dict, List, Optional

from docx.opc.exceptions import PackageNotFoundError
from fastapi import HTTPException, UploadFile, status

from database import tables
from database.connection import CsvDatabase, next_id
from database.csv_io import Row
from modules.audit_log.services import add_log
from modules.common import uploads
from modules.common.utils import find_by_id, index_of, now_iso, validate_pagination
from modules.common.validators import parse_date, require
from modules.documents import docx_generator, schemas
from modules.documents.quantity import build_quantity_placeholders
from modules.field_schema.models import FieldRole

logger = logging.getLogger(__name__)

FILENAME_UNSAFE_RE = re.compile(r"[^A-Za-z0-9а-яА-ЯіїєґІЇЄҐ]")
STORED_NAME_UNSAFE_RE = re.compile(r"[^A-Za-z0-9а-яА-ЯіїєґІЇЄҐ._-]")


# -------------------------------------------------
# Helpers
# -------------------------------------------------

def _template_not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Шаблон не знайдено")


def _yes_no(value) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    return "yes" if str(value or "").strip().lower() in ("yes", "true", "1") else "no"


def _sanitize(value: str) -> str:
    return FILENAME_UNSAFE_RE.sub("_", value or "")


def _template_file(db: CsvDatabase, template: Row) -> str:
    if not template["docx_filename"]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Шаблон не має завантаженого DOCX файлу")
    path = os.path.join(db.templates_dir, os.path.basename(template["docx_filename"]))
    if not os.path.exists(path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="DOCX файл шаблону не знайдено на диску")
    return path


def _extract(path: str) -> List[str]:
    try:
        return docx_generator.extract_placeholders(path)
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError) as e:
        logger.warning("Cannot read DOCX %s: %s", path, e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Файл не є коректним DOCX документом")


# -------------------------------------------------
# Templates
# -------------------------------------------------

def get_templates(db: CsvDatabase) -> List[Row]:
    return [t for t in db.load(tables.TEMPLATES) if t["active"] != "no"]


def get_template(db: CsvDatabase, template_id: str) -> Row:
    template = find_by_id(db.load(tables.TEMPLATES), "template_id", template_id)
    if not template:
        raise _template_not_found()
    return template


def create_template(db: CsvDatabase, payload: schemas.TemplateIn) -> dict:
    name = require(payload.template_name, "Назва шаблону обов'язкова")
    template_type = require(payload.template_type, "Тип шаблону обов'язковий")
    with db.locked(tables.TEMPLATES) as rows:
        template = {
            "template_id": next_id(rows, "template_id"),
            "template_name": name,
            "template_type": template_type,
            "docx_filename": "",
            "placeholder_fields": "",
            "description": (payload.description or "").strip(),
            "created_date": date.today().isoformat(),
            "active": "yes",
            "is_general": _yes_no(payload.is_general),
        }
        rows.append(template)
    add_log(db, "CREATE_TEMPLATE", template["template_id"], name, details=f"Створено шаблон: {name}")
    return {"template_id": template["template_id"], "template": template}


def update_template(db: CsvDatabase, template_id: str, payload: schemas.TemplateIn) -> Row:
    name = require(payload.template_name, "Назва шаблону обов'язкова")
    template_type = require(payload.template_type, "Тип шаблону обов'язковий")
    with db.locked(tables.TEMPLATES) as rows:
        index = index_of(rows, "template_id", template_id)
        if index == -1:
            raise _template_not_found()
        template = dict(rows[index])
        template["template_name"] = name
        template["template_type"] = template_type
        if payload.description is not None:
            template["description"] = payload.description.strip()
        if payload.is_general is not None:
            template["is_general"] = _yes_no(payload.is_general)
        rows[index] = template
    add_log(db, "UPDATE_TEMPLATE", template_id, name, details=f"Оновлено шаблон: {name}")
    return template


def delete_template(db: CsvDatabase, template_id: str) -> None:
    with db.locked(tables.TEMPLATES) as rows:
        index = index_of(rows, "template_id", template_id)
        if index == -1:
            raise _template_not_found()
        rows[index]["active"] = "no"
        name = rows[index]["template_name"]
    add_log(db, "DELETE_TEMPLATE", template_id, name, details=f"Видалено шаблон: {name}")


def upload_template_file(db: CsvDatabase, template_id: str, file: Optional[UploadFile]) -> dict:
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Файл не надано")
    get_template(db, template_id)
    uploads.check_extension(file, (".docx",), "Тільки DOCX файли дозволені")
    content = uploads.read_limited(db, file)

    filename = f"template_{template_id}_{int(time.time() * 1000)}.docx"
    path = os.path.join(db.templates_dir, filename)
    uploads.write_file(path, content)
    try:
        placeholders = _extract(path)
    except HTTPException:
        os.remove(path)
        raise

    with db.locked(tables.TEMPLATES) as rows:
        index = index_of(rows, "template_id", template_id)
        if index == -1:
            os.remove(path)
            raise _template_not_found()
        template = rows[index]
        previous = template["docx_filename"]
        template["docx_filename"] = filename
        template["placeholder_fields"] = ", ".join(placeholders)

    if previous and previous != filename:
        uploads.remove_stored_file(db, db.relative(os.path.join(db.templates_dir, os.path.basename(previous))))

    add_log(db, "UPLOAD_TEMPLATE_FILE", template_id, template["template_name"],
            details=f"Завантажено DOCX файл для шаблону: {template['template_name']}, "
                    f"плейсхолдери: {', '.join(placeholders)}")
    return {"filename": filename, "placeholders": placeholders}


def reextract_placeholders(db: CsvDatabase, template_id: str) -> dict:
    template = get_template(db, template_id)
    if template["active"] == "no":
        raise _template_not_found()
    placeholders = _extract(_template_file(db, template))
    with db.locked(tables.TEMPLATES) as rows:
        index = index_of(rows, "template_id", template_id)
        rows[index]["placeholder_fields"] = ", ".join(placeholders)
    return {"placeholders": placeholders}


# -------------------------------------------------
# Merge data
# -------------------------------------------------

def case_variants(data: Dict[str, str]) -> Dict[str, str]:
    variants = {}
    for key, value in data.items():
        value = value or ""
        variants[f"{key}_upper"] = value.upper()
        variants[f"{key}_cap"] = value[:1].upper() + value[1:]
    return variants


def special_placeholders(now: Optional[datetime] = None) -> Dict[str, str]:
    now = now or datetime.now()
    return {
        "current_date": now.strftime("%d.%m.%Y"),
        "current_datetime": now.strftime("%d.%m.%Y %H:%M"),
    }


def build_merge_data(db: CsvDatabase, employee: Optional[Row], now: Optional[datetime] = None) -> Dict[str, str]:
    """Employee fields + date specials + head counts, each with _upper/_cap variants."""
    data: Dict[str, str] = dict(employee or {})
    data.update(special_placeholders(now))
    data.update(build_quantity_placeholders(db.field_schema(), db.load(tables.EMPLOYEES)))
    data.update(case_variants(data))
    return data


# -------------------------------------------------
# Generation
# -------------------------------------------------

def generate_document(db: CsvDatabase, template_id: str, payload: schemas.GenerateIn) -> dict:
    template = get_template(db, template_id)
    if template["active"] == "no":
        raise _template_not_found()
    employee_id = (payload.employee_id or "").strip()
    is_general = template["is_general"] == "yes"
    if not employee_id and not is_general:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="employee_id обов'язковий")

    employee = None
    if employee_id:
        employee = find_by_id(db.load(tables.EMPLOYEES), "employee_id", employee_id)
        if not employee:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Співробітник не знайдено")
    template_path = _template_file(db, template)

    schema = db.field_schema()
    data = build_merge_data(db, employee)
    parts = [_sanitize(template["template_name"])]
    if employee:
        last_name_field = schema.name_for(FieldRole.LAST_NAME)
        last_name = _sanitize(employee.get(last_name_field, "")) if last_name_field else ""
        if last_name:
            parts.append(last_name)
        parts.append(_sanitize(employee_id))
    parts.append(str(int(time.time() * 1000)))
    filename = "_".join(parts) + ".docx"
    output = os.path.join(db.documents_dir, filename)
    if not uploads.is_inside(output, db.documents_dir):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Невірна назва файлу документа")

    docx_generator.generate_docx(template_path, data, output)

    with db.locked(tables.GENERATED_DOCUMENTS) as rows:
        document_id = next_id(rows, "document_id")
        rows.append({
            "document_id": document_id,
            "template_id": template_id,
            "employee_id": employee_id,
            "docx_filename": filename,
            "generation_date": now_iso(),
            "generated_by": "system",
            "data_snapshot": json.dumps(data, ensure_ascii=False),
        })

    employee_name = schema.employee_name(employee) if employee else ""
    add_log(db, "GENERATE_DOCUMENT", employee_id, employee_name,
            details=f"Згенеровано документ з шаблону: {template['template_name']}, файл: {filename}")
    return {
        "document_id": document_id,
        "filename": filename,
        "download_url": f"/api/documents/{document_id}/download",
    }


# -------------------------------------------------
# Generated documents
# -------------------------------------------------

def _generated_at(document: Row) -> datetime:
    try:
        return datetime.fromisoformat(document["generation_date"].replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        return datetime.min


def get_documents(
    db: CsvDatabase,
    template_id: Optional[str] = None,
    employee_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    offset: Optional[int] = None,
    limit: Optional[int] = None,
) -> dict:
    offset, limit = validate_pagination(offset, limit)
    start = parse_date(start_date) if start_date else None
    end = parse_date(end_date) if end_date else None
    if (start_date and start is None) or (end_date and end is None):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Невірний формат дати (очікується YYYY-MM-DD)")

    documents = db.load(tables.GENERATED_DOCUMENTS)
    if template_id:
        documents = [d for d in documents if d["template_id"] == template_id]
    if employee_id:
        documents = [d for d in documents if d["employee_id"] == employee_id]
    if start:
        documents = [d for d in documents if _generated_at(d) >= datetime.combine(start, dt_time.min)]
    if end:
        documents = [d for d in documents if _generated_at(d) <= datetime.combine(end, dt_time.max)]
    documents.sort(key=_generated_at, reverse=True)

    templates = {t["template_id"]: t for t in db.load(tables.TEMPLATES)}
    employees = {e["employee_id"]: e for e in db.load(tables.EMPLOYEES)}
    schema = db.field_schema()

    page = []
    for document in documents[offset: offset + limit]:
        template = templates.get(document["template_id"])
        employee = employees.get(document["employee_id"])
        page.append({
            "document_id": document["document_id"],
            "template_id": document["template_id"],
            "template_name": template["template_name"] if template else "Невідомий шаблон",
            "employee_id": document["employee_id"],
            "employee_name": schema.employee_name(employee) if employee else "",
            "docx_filename": document["docx_filename"],
            "generation_date": document["generation_date"],
            "generated_by": document["generated_by"],
        })
    return {"documents": page, "total": len(documents), "offset": offset, "limit": limit}


def document_file(db: CsvDatabase, document_id: str) -> tuple:
    document = find_by_id(db.load(tables.GENERATED_DOCUMENTS), "document_id", document_id)
    if not document:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Документ не знайдено")
    filename = STORED_NAME_UNSAFE_RE.sub("_", os.path.basename(document["docx_filename"]))
    path = os.path.join(db.documents_dir, filename)
    if not uploads.is_inside(path, db.documents_dir):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Недозволений шлях до файлу")
    if not os.path.exists(path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Файл документу не знайдено на диску")
    return path, filename


# -------------------------------------------------
# Placeholder preview
# -------------------------------------------------

def placeholder_preview(db: CsvDatabase, employee_id: Optional[str] = None) -> dict:
    employees = db.load(tables.EMPLOYEES)
    if employee_id:
        employee = find_by_id(employees, "employee_id", employee_id)
        if not employee:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Співробітник не знайдено")
    elif employees:
        employee = employees[0]
    else:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Немає співробітників")

    schema = db.field_schema()
    base: List[dict] = []
    for field in schema.fields:
        name = field["field_name"]
        base.append({"placeholder": f"{{{name}}}", "label": field.get("field_label") or name,
                     "value": employee.get(name, ""), "group": "fields"})
    specials = special_placeholders()
    base.append({"placeholder": "{current_date}", "label": "Поточна дата",
                 "value": specials["current_date"], "group": "special"})
    base.append({"placeholder": "{current_datetime}", "label": "Поточна дата і час",
                 "value": specials["current_datetime"], "group": "special"})
    for key, value in build_quantity_placeholders(schema, employees).items():
        base.append({"placeholder": f"{{{key}}}", "label": "Кількість", "value": value, "group": "quantity"})

    variants = []
    for item in base:
        key = item["placeholder"][1:-1]
        value = item["value"]
        variants.append({"placeholder": f"{{{key}_upper}}", "label": f"{item['label']} (ВЕЛИКІ)",
                         "value": value.upper(), "group": "case_variants"})
        variants.append({"placeholder": f"{{{key}_cap}}", "label": f"{item['label']} (З великої)",
                         "value": value[:1].upper() + value[1:], "group": "case_variants"})

    return {
        "employee_id": employee["employee_id"],
        "employee_name": schema.employee_name(employee),
        "placeholders": base + variants,
    }
