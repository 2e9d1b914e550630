# modules/documents/quantity.py
from typing import Dict, List

from database.csv_io import Row
from modules.field_schema.models import FieldRole, FieldSchema, FieldType

FIT_STATUS_FIELD_ID = "f_fit_status"


def build_quantity_placeholders(schema: FieldSchema, employees: List[Row]) -> Dict[str, str]:
    """
    Head counts for document templates.

    For every select field with a ``field_id``: ``<field_id>_quantity`` (all
    employees) and ``<field_id>_option<N>_quantity`` (1-based option index).
    The STATUS field adds ``present_quantity`` / ``absent_quantity``, and the
    fitness field is also counted among present employees.
    """
    result: Dict[str, str] = {}
    selects = [f for f in schema.fields if f.get("field_type") == FieldType.SELECT.value and f.get("field_id")]
    for field in selects:
        field_id, name = field["field_id"], field["field_name"]
        result[f"{field_id}_quantity"] = str(len(employees))
        for n, option in enumerate(schema.options(name), start=1):
            result[f"{field_id}_option{n}_quantity"] = str(sum(1 for e in employees if e.get(name) == option))

    status_field = schema.field_by_role(FieldRole.STATUS)
    working, dismissed = schema.working_status, schema.dismissed_status
    if not status_field or not status_field.get("field_id") or not working:
        return result

    status_name = status_field["field_name"]
    present = [e for e in employees if e.get(status_name) == working]
    absent = [e for e in employees if e.get(status_name) and e.get(status_name) not in (working, dismissed)]
    result["present_quantity"] = str(len(present))
    result["absent_quantity"] = str(len(absent))

    fit_field = next((f for f in selects if f["field_id"] == FIT_STATUS_FIELD_ID), None)
    if fit_field:
        result[f"{FIT_STATUS_FIELD_ID}_present_quantity"] = str(len(present))
        for n, option in enumerate(schema.options(fit_field["field_name"]), start=1):
            count = sum(1 for e in present if e.get(fit_field["field_name"]) == option)
            result[f"{FIT_STATUS_FIELD_ID}_present_option{n}_quantity"] = str(count)
    return result
