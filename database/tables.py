# database/tables.py
# File name and column layout of every CSV table (employees are schema driven)

EMPLOYEES = "employees"
FIELDS_SCHEMA = "fields_schema"
LOGS = "logs"
TEMPLATES = "templates"
GENERATED_DOCUMENTS = "generated_documents"
STATUS_EVENTS = "status_events"
STATUS_HISTORY = "status_history"
REPRIMANDS = "reprimands"
CONFIG = "config"

FILE_NAMES = {
    EMPLOYEES: "employees.csv",
    FIELDS_SCHEMA: "fields_schema.csv",
    LOGS: "logs.csv",
    TEMPLATES: "templates.csv",
    GENERATED_DOCUMENTS: "generated_documents.csv",
    STATUS_EVENTS: "status_events.csv",
    STATUS_HISTORY: "status_history.csv",
    REPRIMANDS: "reprimands.csv",
    CONFIG: "config.csv",
}

FIELD_SCHEMA_COLUMNS = [
    "field_id",
    "field_order",
    "field_name",
    "field_label",
    "field_type",
    "field_options",
    "show_in_table",
    "field_group",
    "editable_in_table",
    "role",
]

LOG_COLUMNS = [
    "log_id",
    "timestamp",
    "action",
    "employee_id",
    "employee_name",
    "field_name",
    "old_value",
    "new_value",
    "details",
]

TEMPLATE_COLUMNS = [
    "template_id",
    "template_name",
    "template_type",
    "docx_filename",
    "placeholder_fields",
    "description",
    "created_date",
    "active",
    "is_general",
]

GENERATED_DOCUMENT_COLUMNS = [
    "document_id",
    "template_id",
    "employee_id",
    "docx_filename",
    "generation_date",
    "generated_by",
    "data_snapshot",
]

STATUS_EVENT_COLUMNS = [
    "event_id",
    "employee_id",
    "status",
    "start_date",
    "end_date",
    "created_at",
    "active",
]

STATUS_HISTORY_COLUMNS = [
    "history_id",
    "employee_id",
    "old_status",
    "new_status",
    "old_start_date",
    "old_end_date",
    "new_start_date",
    "new_end_date",
    "changed_at",
    "changed_by",
]

REPRIMAND_COLUMNS = [
    "record_id",
    "employee_id",
    "record_date",
    "record_type",
    "order_number",
    "note",
    "created_at",
]

CONFIG_COLUMNS = ["config_key", "config_value", "config_description"]

FIXED_COLUMNS = {
    FIELDS_SCHEMA: FIELD_SCHEMA_COLUMNS,
    LOGS: LOG_COLUMNS,
    TEMPLATES: TEMPLATE_COLUMNS,
    GENERATED_DOCUMENTS: GENERATED_DOCUMENT_COLUMNS,
    STATUS_EVENTS: STATUS_EVENT_COLUMNS,
    STATUS_HISTORY: STATUS_HISTORY_COLUMNS,
    REPRIMANDS: REPRIMAND_COLUMNS,
    CONFIG: CONFIG_COLUMNS,
}
