# modules/field_schema/models.py
from __future__ import annotations

import enum
from typing import Dict, List, Optional


class FieldRole(str, enum.Enum):
    PHOTO = "PHOTO"
    EMPLOYEE_ID = "EMPLOYEE_ID"
    LAST_NAME = "LAST_NAME"
    FIRST_NAME = "FIRST_NAME"
    MIDDLE_NAME = "MIDDLE_NAME"
    BIRTH_DATE = "BIRTH_DATE"
    GENDER = "GENDER"
    STATUS = "STATUS"
    STATUS_START = "STATUS_START"
    STATUS_END = "STATUS_END"
    GRADE = "GRADE"
    POSITION = "POSITION"


class FieldType(str, enum.Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    DATE = "date"
    SELECT = "select"
    EMAIL = "email"
    FILE = "file"
    PHOTO = "photo"


ISSUE_SUFFIX = "_issue_date"
EXPIRY_SUFFIX = "_expiry_date"


def _field(order, field_id, name, label, ftype, group, options="", in_table="no", editable="no", role=""):
    return {
        "field_id": field_id,
        "field_order": str(order),
        "field_name": name,
        "field_label": label,
        "field_type": ftype,
        "field_options": options,
        "show_in_table": in_table,
        "field_group": group,
        "editable_in_table": editable,
        "role": role,
    }


# Seed for data/fields_schema.csv and fallback when that file is empty
DEFAULT_FIELDS: List[Dict[str, str]] = [
    _field(1, "f_photo", "photo", "Фото", "photo", "Основне", role="PHOTO"),
    _field(2, "f_employee_id", "employee_id", "ID співробітника", "text", "Основне", in_table="yes", role="EMPLOYEE_ID"),
    _field(3, "f_last_name", "last_name", "Прізвище", "text", "Основне", in_table="yes", editable="yes", role="LAST_NAME"),
    _field(4, "f_first_name", "first_name", "Ім'я", "text", "Основне", in_table="yes", editable="yes", role="FIRST_NAME"),
    _field(5, "f_middle_name", "middle_name", "По батькові", "text", "Основне", in_table="yes", editable="yes", role="MIDDLE_NAME"),
    _field(6, "f_birth_date", "birth_date", "Дата народження", "date", "Основне", role="BIRTH_DATE"),
    _field(7, "f_gender", "gender", "Стать", "select", "Основне", options="Чоловіча|Жіноча", role="GENDER"),
    _field(8, "f_employment_status", "employment_status", "Статус роботи", "select", "Статус",
           options="Працює|Звільнений|Відпустка|Лікарняний|Відрядження", in_table="yes", role="STATUS"),
    _field(9, "f_status_start_date", "status_start_date", "Дата початку статусу", "date", "Статус", role="STATUS_START"),
    _field(10, "f_status_end_date", "status_end_date", "Дата закінчення статусу", "date", "Статус", role="STATUS_END"),
    _field(11, "f_department", "department", "Підрозділ", "text", "Робота", in_table="yes", editable="yes"),
    _field(12, "f_grade", "grade", "Розряд", "text", "Робота", role="GRADE"),
    _field(13, "f_position", "position", "Посада", "text", "Робота", in_table="yes", editable="yes", role="POSITION"),
    _field(14, "f_fit_status", "fit_status", "Придатність", "select", "Робота",
           options="Придатний|Обмежено придатний|Непридатний"),
    _field(15, "f_email", "email", "Ел. пошта", "email", "Контакти"),
    _field(16, "f_phone", "phone", "Телефон", "text", "Контакти", in_table="yes", editable="yes"),
    _field(17, "f_residence_place", "residence_place", "Місце проживання", "text", "Контакти"),
    _field(18, "f_education", "education", "Освіта", "text", "Освіта"),
    _field(19, "f_tax_id", "tax_id", "ІПН", "text", "Фінанси"),
    _field(20, "f_bank_iban", "bank_iban", "IBAN", "text", "Фінанси"),
    _field(21, "f_personal_matter_file", "personal_matter_file", "Особова справа", "file", "Документи"),
    _field(22, "f_medical_commission_file", "medical_commission_file", "Медкомісія", "file", "Документи"),
    _field(23, "f_id_certificate_file", "id_certificate_file", "Посвідчення особи", "file", "Документи"),
    _field(24, "f_driver_license_file", "driver_license_file", "Водійське посвідчення", "file", "Документи"),
    _field(25, "f_education_diploma_file", "education_diploma_file", "Диплом про освіту", "file", "Документи"),
    _field(26, "f_notes", "notes", "Примітка", "textarea", "Інше"),
]


def _order(field: Dict[str, str]) -> int:
    try:
        return int(field.get("field_order") or 0)
    except ValueError:
        return 0


class FieldSchema:
    """Parsed fields_schema.csv with role lookups."""

    def __init__(self, rows: List[Dict[str, str]]):
        fields = [r for r in rows if (r.get("field_name") or "").strip()]
        if not fields:
            fields = [dict(f) for f in DEFAULT_FIELDS]
        self.fields: List[Dict[str, str]] = sorted(fields, key=_order)
        self._by_name = {f["field_name"]: f for f in self.fields}

    # ----- lookups -----
    def get(self, field_name: str) -> Optional[Dict[str, str]]:
        return self._by_name.get(field_name)

    def field_by_role(self, role: FieldRole) -> Optional[Dict[str, str]]:
        for field in self.fields:
            if field.get("role") == role.value:
                return field
        return None

    def name_for(self, role: FieldRole) -> Optional[str]:
        field = self.field_by_role(role)
        return field["field_name"] if field else None

    def label_for(self, column: str) -> str:
        field = self._by_name.get(column)
        if field and field.get("field_label"):
            return field["field_label"]
        for suffix, extra in ((ISSUE_SUFFIX, "дата видачі"), (EXPIRY_SUFFIX, "дата закінчення")):
            if column.endswith(suffix):
                base = self._by_name.get(column[: -len(suffix)])
                if base:
                    return f"{base.get('field_label') or base['field_name']} ({extra})"
        return column

    def format_field_label(self, column: str) -> str:
        label = self.label_for(column)
        return column if label == column else f"{label} ({column})"

    # ----- derived column sets -----
    @property
    def employee_columns(self) -> List[str]:
        columns: List[str] = []
        for field in self.fields:
            columns.append(field["field_name"])
            if field.get("field_type") == FieldType.FILE.value:
                columns.append(field["field_name"] + ISSUE_SUFFIX)
                columns.append(field["field_name"] + EXPIRY_SUFFIX)
        if "employee_id" not in columns:
            columns.insert(0, "employee_id")
        return columns

    @property
    def document_fields(self) -> List[str]:
        return [f["field_name"] for f in self.fields if f.get("field_type") == FieldType.FILE.value]

    @property
    def photo_field(self) -> Optional[str]:
        return self.name_for(FieldRole.PHOTO)

    @property
    def date_columns(self) -> List[str]:
        typed = {f["field_name"] for f in self.fields if f.get("field_type") == FieldType.DATE.value}
        return [c for c in self.employee_columns if c in typed or c.endswith("_date")]

    def options(self, column: str) -> List[str]:
        field = self._by_name.get(column) or {}
        return [o.strip() for o in (field.get("field_options") or "").split("|") if o.strip()]

    @property
    def status_options(self) -> List[str]:
        status = self.name_for(FieldRole.STATUS)
        return self.options(status) if status else []

    @property
    def working_status(self) -> str:
        opts = self.status_options
        return opts[0] if opts else ""

    @property
    def dismissed_status(self) -> str:
        opts = self.status_options
        return opts[1] if len(opts) > 1 else ""

    def employee_name(self, employee: Dict[str, str]) -> str:
        parts = []
        for role in (FieldRole.LAST_NAME, FieldRole.FIRST_NAME, FieldRole.MIDDLE_NAME):
            name = self.name_for(role)
            value = (employee.get(name) or "").strip() if name else ""
            if value:
                parts.append(value)
        return " ".join(parts)
