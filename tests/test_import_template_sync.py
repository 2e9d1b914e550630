# tests/test_import_template_sync.py
from database import csv_io, tables
from modules.employees.services import import_sample_path, sync_import_template


def test_sync_import_template_lifecycle(db):
    columns = db.field_schema().employee_columns

    created = sync_import_template(db)
    assert created["status"] == "created"
    assert csv_io.read_header(import_sample_path(db)) == columns

    assert sync_import_template(db)["status"] == "up_to_date"

    schema_rows = db.load(tables.FIELDS_SCHEMA)
    schema_rows.append({"field_id": "f_shoe", "field_order": "99", "field_name": "shoe_size",
                        "field_label": "Розмір взуття", "field_type": "text"})
    db.save(tables.FIELDS_SCHEMA, [r for r in schema_rows if r["field_name"] != "notes"])

    updated = sync_import_template(db)
    assert updated["status"] == "updated"
    assert updated["added"] == ["shoe_size"]
    assert updated["removed"] == ["notes"]
