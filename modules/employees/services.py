# modules/employees/services.py
import csv
import logging
import os
import shutil
from typing import Dict, List, Optional

import pandas as pd
from fastapi import HTTPException, UploadFile, status

from database import csv_io, tables
from database.connection import CsvDatabase, next_id
from database.csv_io import Row
from modules.audit_log.schemas import LogEntryCreate
from modules.audit_log.services import add_log, add_logs
from modules.common import uploads
from modules.common.utils import (
    MAX_DOCUMENT_RESULTS,
    MAX_EMPLOYEE_RESULTS,
    MAX_SEARCH_LENGTH,
    MAX_TEMPLATE_RESULTS,
    MIN_SEARCH_LENGTH,
    find_by_id,
    index_of,
)
from modules.common.validators import date_field_error, validate_date_field
from modules.field_schema.models import EXPIRY_SUFFIX, ISSUE_SUFFIX, FieldRole, FieldSchema
from modules.reprimands.services import delete_reprimands_for_employee
from modules.status_events.services import (
    add_status_history_entries,
    delete_events_for_employee,
    delete_history_for_employee,
    history_entry,
    sync_employee_status,
)

logger = logging.getLogger(__name__)

IMPORT_SAMPLE_NAME = "employees_import_sample.csv"
MAX_IMPORT_ERRORS = 50


# -------------------------------------------------
# Helpers
# -------------------------------------------------

def _not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Співробітник не знайдено")


def _bad_request(message: str):
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def _strip_all(row: Row) -> Row:
    return {key: value.strip() for key, value in row.items()}


def _check_names(schema: FieldSchema, employee: Row) -> None:
    first = schema.name_for(FieldRole.FIRST_NAME) or "first_name"
    last = schema.name_for(FieldRole.LAST_NAME) or "last_name"
    if not employee.get(first, "").strip():
        raise _bad_request("Ім'я обов'язкове для заповнення")
    if not employee.get(last, "").strip():
        raise _bad_request("Прізвище обов'язкове для заповнення")


def _check_document_dates(schema: FieldSchema, employee: Row) -> None:
    for doc_field in schema.document_fields:
        issue = employee.get(doc_field + ISSUE_SUFFIX, "").strip()
        expiry = employee.get(doc_field + EXPIRY_SUFFIX, "").strip()
        if issue and expiry and expiry < issue:
            raise _bad_request(f"Дата закінчення не може бути раніше дати видачі для документа {doc_field}")


def _valid_employee_id(employee_id: str) -> bool:
    """explicit ids are plain numbers; they end up in file paths"""
    return employee_id.isdigit()


def _storage_target(db: CsvDatabase, employee_id: str, filename: str) -> str:
    target = os.path.join(db.employee_dir(employee_id), filename)
    if not uploads.is_inside(target, db.files_dir):
        logger.warning("Refusing to store %s outside of %s", target, db.files_dir)
        raise _bad_request("Невірний ID співробітника")
    return target


def _clear_uploads(schema: FieldSchema, employee: Row) -> None:
    """file and photo cells are only filled by the upload endpoints"""
    for doc_field in schema.document_fields:
        employee[doc_field] = ""
    if schema.photo_field:
        employee[schema.photo_field] = ""


def get_employee_or_404(db: CsvDatabase, employee_id: str) -> Row:
    employee = find_by_id(db.load(tables.EMPLOYEES), "employee_id", employee_id)
    if not employee:
        raise _not_found()
    return employee


def matches_search(employee: Row, term: str) -> bool:
    term = term.strip().lower()
    return not term or any(term in value.lower() for value in employee.values())


# -------------------------------------------------
# Employee CRUD
# -------------------------------------------------

def get_employees(db: CsvDatabase, search: Optional[str] = None) -> List[Row]:
    employees = db.load(tables.EMPLOYEES)
    if search:
        employees = [e for e in employees if matches_search(e, search)]
    return employees


def get_employee(db: CsvDatabase, employee_id: str) -> Row:
    get_employee_or_404(db, employee_id)
    # the stored status follows the status event active today
    return sync_employee_status(db, employee_id) or get_employee_or_404(db, employee_id)


def create_employee(db: CsvDatabase, payload: Dict) -> dict:
    schema = db.field_schema()
    columns = schema.employee_columns
    employee = _strip_all(csv_io.normalize_row(columns, payload))
    _clear_uploads(schema, employee)
    _check_names(schema, employee)
    for column in schema.date_columns:
        validate_date_field(employee.get(column), column)
    _check_document_dates(schema, employee)
    if employee["employee_id"] and not _valid_employee_id(employee["employee_id"]):
        raise _bad_request("ID співробітника має бути числом")

    with db.locked(tables.EMPLOYEES) as employees:
        employee_id = employee["employee_id"] or next_id(employees, "employee_id")
        if find_by_id(employees, "employee_id", employee_id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="ID співробітника вже існує")
        employee["employee_id"] = employee_id
        employees.append(employee)

    add_log(db, "CREATE", employee_id, schema.employee_name(employee), details="Створено нового співробітника")
    logger.info("Employee %s created", employee_id)
    return {"employee_id": employee_id, "employee": employee}


def update_employee(db: CsvDatabase, employee_id: str, payload: Dict) -> Row:
    schema = db.field_schema()
    columns = schema.employee_columns
    blocked = set(schema.document_fields) | {schema.photo_field, "employee_id"}
    updates = {col: payload[col] for col in columns if col in payload and col not in blocked}

    with db.locked(tables.EMPLOYEES) as employees:
        index = index_of(employees, "employee_id", employee_id)
        if index == -1:
            raise _not_found()
        current = employees[index]
        updated = _strip_all(csv_io.merge_row(columns, current, updates))
        updated["employee_id"] = employee_id

        _check_names(schema, updated)
        # legacy values in untouched columns are left alone
        for column in schema.date_columns:
            if current.get(column, "").strip() != updated.get(column, ""):
                validate_date_field(updated[column], column)
        _check_document_dates(schema, updated)

        changed = [c for c in columns if c != "employee_id" and current.get(c, "") != updated.get(c, "")]
        employees[index] = updated

    name = schema.employee_name(updated)
    entries = []
    for column in changed:
        label = schema.format_field_label(column)
        entries.append(LogEntryCreate(
            action="UPDATE",
            employee_id=employee_id,
            employee_name=name,
            field_name=label,
            old_value=current.get(column, ""),
            new_value=updated.get(column, ""),
            details=f"Змінено поле: {label}",
        ))
    add_logs(db, entries)

    status_field = schema.name_for(FieldRole.STATUS)
    if status_field and status_field in changed:
        add_status_history_entries(db, [history_entry(schema, employee_id, current, updated, "user")])
    return updated


def delete_employee(db: CsvDatabase, employee_id: str) -> None:
    with db.locked(tables.EMPLOYEES) as employees:
        index = index_of(employees, "employee_id", employee_id)
        if index == -1:
            raise _not_found()
        deleted = employees.pop(index)

    delete_events_for_employee(db, employee_id)
    delete_reprimands_for_employee(db, employee_id)
    delete_history_for_employee(db, employee_id)

    employee_dir = db.employee_dir(employee_id)
    if uploads.is_inside(employee_dir, db.files_dir) and os.path.isdir(employee_dir):
        shutil.rmtree(employee_dir)

    name = db.field_schema().employee_name(deleted)
    add_log(db, "DELETE", employee_id, name, details="Співробітника видалено")
    logger.info("Employee %s deleted", employee_id)


# -------------------------------------------------
# Document files and photo
# -------------------------------------------------

def upload_document(
    db: CsvDatabase,
    employee_id: str,
    file: Optional[UploadFile],
    file_field: str,
    issue_date: str = "",
    expiry_date: str = "",
) -> dict:
    if file is None or not file.filename:
        raise _bad_request("Файл обов'язковий")
    get_employee_or_404(db, employee_id)
    schema = db.field_schema()
    if file_field not in schema.document_fields:
        raise _bad_request("Невірне поле документа")
    ext = uploads.check_extension(
        file, uploads.DOCUMENT_EXTENSIONS, "Дозволені лише файли PDF та зображення (jpg, png, gif, webp)"
    )

    issue_date, expiry_date = (issue_date or "").strip(), (expiry_date or "").strip()
    error = date_field_error(issue_date, "issue_date") or date_field_error(expiry_date, "expiry_date")
    if error:
        raise _bad_request(error)
    if issue_date and expiry_date and expiry_date < issue_date:
        raise _bad_request("Дата закінчення не може бути раніше дати видачі")

    content = uploads.read_limited(db, file)
    target = _storage_target(db, employee_id, file_field + ext)
    columns = schema.employee_columns

    with db.locked(tables.EMPLOYEES) as employees:
        index = index_of(employees, "employee_id", employee_id)
        if index == -1:
            raise _not_found()
        current = employees[index]
        uploads.write_file(target, content)
        stored = db.relative(target)
        changes = {file_field: stored}
        if file_field + ISSUE_SUFFIX in columns:
            changes[file_field + ISSUE_SUFFIX] = issue_date
        if file_field + EXPIRY_SUFFIX in columns:
            changes[file_field + EXPIRY_SUFFIX] = expiry_date
        employees[index] = csv_io.merge_row(columns, current, changes)

    old_path = current.get(file_field, "")
    uploads.remove_stored_file(db, old_path, keep=target)

    label = schema.format_field_label(file_field)
    add_log(db, "UPDATE", employee_id, schema.employee_name(current), label, old_path, stored,
            f"Завантажено документ: {label}")
    return {"path": stored}


def delete_document(db: CsvDatabase, employee_id: str, file_field: str) -> None:
    schema = db.field_schema()
    if file_field not in schema.document_fields:
        raise _bad_request("Невірне поле документа")
    columns = schema.employee_columns

    with db.locked(tables.EMPLOYEES) as employees:
        index = index_of(employees, "employee_id", employee_id)
        if index == -1:
            raise _not_found()
        current = employees[index]
        stored = current.get(file_field, "")
        if not stored:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Файл не знайдено")
        changes = {file_field: ""}
        for column in (file_field + ISSUE_SUFFIX, file_field + EXPIRY_SUFFIX):
            if column in columns:
                changes[column] = ""
        employees[index] = csv_io.merge_row(columns, current, changes)

    uploads.remove_stored_file(db, stored)
    label = schema.format_field_label(file_field)
    add_log(db, "UPDATE", employee_id, schema.employee_name(current), label, stored, "",
            f"Видалено документ: {label}")


def upload_photo(db: CsvDatabase, employee_id: str, file: Optional[UploadFile]) -> dict:
    if file is None or not file.filename:
        raise _bad_request("Файл фото обов'язковий")
    get_employee_or_404(db, employee_id)
    schema = db.field_schema()
    photo_field = schema.photo_field
    if not photo_field:
        raise _bad_request("Поле фото не налаштоване")
    ext = uploads.check_extension(file, uploads.IMAGE_EXTENSIONS, "Дозволені лише зображення (jpg, png, gif, webp)")
    if file.content_type and not file.content_type.startswith("image/"):
        raise _bad_request("Дозволені лише зображення (jpg, png, gif, webp)")

    content = uploads.read_limited(db, file)
    target = _storage_target(db, employee_id, "photo" + ext)

    with db.locked(tables.EMPLOYEES) as employees:
        index = index_of(employees, "employee_id", employee_id)
        if index == -1:
            raise _not_found()
        current = employees[index]
        uploads.write_file(target, content)
        stored = db.relative(target)
        employees[index] = csv_io.merge_row(schema.employee_columns, current, {photo_field: stored})

    old_path = current.get(photo_field, "")
    uploads.remove_stored_file(db, old_path, keep=target)
    add_log(db, "UPDATE", employee_id, schema.employee_name(current), schema.format_field_label(photo_field),
            old_path, stored, "Завантажено фото співробітника")
    return {"path": stored}


def delete_photo(db: CsvDatabase, employee_id: str) -> None:
    schema = db.field_schema()
    photo_field = schema.photo_field
    with db.locked(tables.EMPLOYEES) as employees:
        index = index_of(employees, "employee_id", employee_id)
        if index == -1:
            raise _not_found()
        current = employees[index]
        stored = current.get(photo_field, "") if photo_field else ""
        if not stored:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Фото не знайдено")
        employees[index] = csv_io.merge_row(schema.employee_columns, current, {photo_field: ""})

    uploads.remove_stored_file(db, stored)
    add_log(db, "UPDATE", employee_id, schema.employee_name(current), schema.format_field_label(photo_field),
            stored, "", "Видалено фото співробітника")


# -------------------------------------------------
# CSV import and import sample
# -------------------------------------------------

def import_employees(db: CsvDatabase, file: Optional[UploadFile]) -> dict:
    if file is None or not file.filename:
        raise _bad_request("Файл CSV не знайдено")
    content = uploads.read_limited(db, file)
    try:
        records = csv_io.parse_csv_bytes(content)
    except (pd.errors.ParserError, csv.Error, UnicodeDecodeError, ValueError):
        logger.exception("Import CSV could not be parsed")
        raise _bad_request("Невірний формат CSV")
    if not records:
        raise _bad_request("CSV не містить даних")

    schema = db.field_schema()
    columns = schema.employee_columns
    if not any(column in columns for column in records[0].keys()):
        raise _bad_request("Заголовки CSV не збігаються з employees.csv")

    first = schema.name_for(FieldRole.FIRST_NAME) or "first_name"
    last = schema.name_for(FieldRole.LAST_NAME) or "last_name"
    errors: List[dict] = []
    added: List[Row] = []
    skipped = 0

    def _skip(row_number: int, reason: str) -> None:
        nonlocal skipped
        skipped += 1
        if len(errors) < MAX_IMPORT_ERRORS:
            errors.append({"row": row_number, "reason": reason})

    with db.locked(tables.EMPLOYEES) as employees:
        existing_ids = {e["employee_id"] for e in employees}
        for position, record in enumerate(records):
            # data rows start on line 2, right after the header
            row_number = position + 2
            employee = _strip_all(csv_io.normalize_row(columns, record))
            if not any(employee.values()):
                skipped += 1
                continue
            if not employee[first] or not employee[last]:
                _skip(row_number, "Не вказані ім'я та прізвище (обидва поля обов'язкові)")
                continue
            employee_id = employee["employee_id"]
            if employee_id and not _valid_employee_id(employee_id):
                _skip(row_number, "ID має бути числом")
                continue
            if employee_id and employee_id in existing_ids:
                _skip(row_number, "ID вже існує")
                continue
            employee["employee_id"] = employee_id or next_id(employees, "employee_id")
            _clear_uploads(schema, employee)
            existing_ids.add(employee["employee_id"])
            employees.append(employee)
            added.append(employee)

    add_logs(db, [
        LogEntryCreate(
            action="CREATE",
            employee_id=e["employee_id"],
            employee_name=schema.employee_name(e),
            details="Створено співробітника (імпорт)",
        )
        for e in added
    ])
    logger.info("Import finished: %d added, %d skipped", len(added), skipped)
    return {"added": len(added), "skipped": skipped, "errors": errors}


def import_sample_path(db: CsvDatabase) -> str:
    return os.path.join(db.data_dir, IMPORT_SAMPLE_NAME)


def sync_import_template(db: CsvDatabase) -> dict:
    """Keep the import sample header equal to the current employee columns."""
    path = import_sample_path(db)
    columns = db.field_schema().employee_columns
    if not os.path.exists(path):
        csv_io.write_csv(path, columns, [])
        return {"status": "created", "added": columns, "removed": []}

    header = csv_io.read_header(path)
    if header == columns:
        return {"status": "up_to_date", "added": [], "removed": []}

    csv_io.write_csv(path, columns, [])
    return {
        "status": "updated",
        "added": [c for c in columns if c not in header],
        "removed": [c for c in header if c not in columns],
    }


# -------------------------------------------------
# Global search
# -------------------------------------------------

def global_search(db: CsvDatabase, query: Optional[str]) -> dict:
    term = (query or "").strip()
    if len(term) < MIN_SEARCH_LENGTH or len(term) > MAX_SEARCH_LENGTH:
        raise _bad_request(
            f"Довжина пошукового запиту має бути від {MIN_SEARCH_LENGTH} до {MAX_SEARCH_LENGTH} символів"
        )
    needle = term.lower()
    schema = db.field_schema()

    employees = [e for e in db.load(tables.EMPLOYEES) if matches_search(e, needle)][:MAX_EMPLOYEE_RESULTS]
    templates = [
        t for t in db.load(tables.TEMPLATES)
        if t["active"] != "no"
        and (needle in t["template_name"].lower() or needle in t["description"].lower())
    ][:MAX_TEMPLATE_RESULTS]
    documents = [
        d for d in db.load(tables.GENERATED_DOCUMENTS) if needle in d["docx_filename"].lower()
    ][:MAX_DOCUMENT_RESULTS]

    return {
        "employees": [
            {"employee_id": e["employee_id"], "name": schema.employee_name(e), "employee": e} for e in employees
        ],
        "templates": templates,
        "documents": documents,
    }
