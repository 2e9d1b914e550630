# database/connection.py
import logging
import os
import threading
from contextlib import contextmanager
from typing import Dict, Generator, Iterator, List

from config.settings import settings
from database import csv_io, tables
from database.csv_io import Row
from modules.field_schema.models import DEFAULT_FIELDS, FieldSchema

logger = logging.getLogger(__name__)

# config.csv keys with their settings fallbacks
CONFIG_DEFAULTS = {
    "max_file_upload_mb": "MAX_FILE_UPLOAD_MB",
    "retirement_age_years": "RETIREMENT_AGE_YEARS",
    "max_log_entries": "MAX_LOG_ENTRIES",
    "max_report_preview_rows": "MAX_REPORT_PREVIEW_ROWS",
    "notification_window_days": "NOTIFICATION_WINDOW_DAYS",
}


# ---------- small helpers ----------
def next_id(rows: List[Row], id_field: str) -> str:
    """max numeric id + 1; ids that are not numbers are ignored"""
    highest = 0
    for row in rows:
        value = str(row.get(id_field) or "").strip()
        if value.isdigit():
            highest = max(highest, int(value))
    return str(highest + 1)


class CsvDatabase:
    """
    File backed storage: ``<storage_dir>/data/*.csv`` for the tables and
    ``<storage_dir>/files`` for uploads, templates and generated documents.

    Every table has its own re-entrant lock; ``locked()`` holds it across a
    full read/modify/write cycle.
    """

    def __init__(self, storage_dir: str):
        self.storage_dir = os.path.abspath(storage_dir)
        self.data_dir = os.path.join(self.storage_dir, "data")
        self.files_dir = os.path.join(self.storage_dir, "files")
        self.templates_dir = os.path.join(self.files_dir, "templates")
        self.documents_dir = os.path.join(self.files_dir, "documents")
        self._locks: Dict[str, threading.RLock] = {name: threading.RLock() for name in tables.FILE_NAMES}

    # ---------- paths ----------
    def path(self, table: str) -> str:
        return os.path.join(self.data_dir, tables.FILE_NAMES[table])

    def employee_dir(self, employee_id: str) -> str:
        return os.path.join(self.files_dir, f"employee_{employee_id}")

    def relative(self, absolute_path: str) -> str:
        """path stored in CSV cells, relative to the storage root with forward slashes"""
        return os.path.relpath(absolute_path, self.storage_dir).replace(os.sep, "/")

    def absolute(self, stored_path: str) -> str:
        return os.path.join(self.storage_dir, *stored_path.strip("/").split("/"))

    # ---------- schema ----------
    def field_schema(self) -> FieldSchema:
        return FieldSchema(self.load(tables.FIELDS_SCHEMA))

    def columns(self, table: str) -> List[str]:
        if table == tables.EMPLOYEES:
            return self.field_schema().employee_columns
        return tables.FIXED_COLUMNS[table]

    # ---------- read / write ----------
    def load(self, table: str) -> List[Row]:
        with self._locks[table]:
            return csv_io.read_csv(self.path(table), self.columns(table))

    def save(self, table: str, rows: List[Row]) -> None:
        with self._locks[table]:
            csv_io.write_csv(self.path(table), self.columns(table), rows)

    @contextmanager
    def locked(self, table: str) -> Iterator[List[Row]]:
        """
        Yield the table rows for in-place mutation; they are written back
        when the block exits normally and changed them, and discarded when
        it raises.
        """
        with self._locks[table]:
            rows = self.load(table)
            snapshot = [dict(row) for row in rows]
            yield rows
            if rows != snapshot:
                self.save(table, rows)

    # ---------- config ----------
    def load_config(self) -> Dict[str, object]:
        config: Dict[str, object] = {key: getattr(settings, attr) for key, attr in CONFIG_DEFAULTS.items()}
        for row in self.load(tables.CONFIG):
            key = row.get("config_key", "").strip()
            if not key:
                continue
            value = row.get("config_value", "")
            if key in CONFIG_DEFAULTS:
                try:
                    number = int(value)
                except ValueError:
                    logger.warning("Ignoring non numeric config value %s=%r", key, value)
                    continue
                if number > 0:
                    config[key] = number
            else:
                config[key] = value
        return config

    # ---------- bootstrap ----------
    def init_storage(self) -> None:
        for directory in (self.data_dir, self.files_dir, self.templates_dir, self.documents_dir):
            os.makedirs(directory, exist_ok=True)

        schema_path = self.path(tables.FIELDS_SCHEMA)
        existing = csv_io.read_csv(schema_path, tables.FIELD_SCHEMA_COLUMNS)
        if not any(row.get("field_name") for row in existing):
            csv_io.write_csv(schema_path, tables.FIELD_SCHEMA_COLUMNS, DEFAULT_FIELDS)
            logger.info("Seeded default field schema at %s", schema_path)

        for table in tables.FILE_NAMES:
            csv_io.ensure_csv_file(self.path(table), self.columns(table))
        logger.info("Storage ready at %s", self.storage_dir)


storage = CsvDatabase(settings.STORAGE_DIR)


# ---------- dependency ----------
def get_db() -> Generator[CsvDatabase, None, None]:
    yield storage
