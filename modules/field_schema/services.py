# modules/field_schema/services.py
from typing import Dict, List

from database.connection import CsvDatabase


def _field_out(field: Dict[str, str]) -> dict:
    try:
        order = int(field.get("field_order") or 0)
    except ValueError:
        order = 0
    return {
        "order": order,
        "key": field["field_name"],
        "label": field.get("field_label") or field["field_name"],
        "type": field.get("field_type") or "text",
        "options": [o for o in (field.get("field_options") or "").split("|") if o],
        "group": field.get("field_group") or "",
        "showInTable": field.get("show_in_table") == "yes",
        "editableInTable": field.get("editable_in_table") == "yes",
        "role": field.get("role") or "",
    }


def get_fields_schema(db: CsvDatabase) -> dict:
    """Fields grouped for the employee card, plus the summary table columns."""
    groups: Dict[str, List[dict]] = {}
    table_fields: List[dict] = []
    all_fields: List[dict] = []
    for field in db.field_schema().fields:
        data = _field_out(field)
        all_fields.append(data)
        groups.setdefault(data["group"], []).append(data)
        if data["showInTable"]:
            table_fields.append(data)
    return {"groups": groups, "tableFields": table_fields, "allFields": all_fields}
