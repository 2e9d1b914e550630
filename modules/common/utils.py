# modules/common/utils.py
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import HTTPException

from database.csv_io import Row

# Pagination
DEFAULT_PAGINATION_LIMIT = 50
MAX_PAGINATION_LIMIT = 1000

# Global search
MIN_SEARCH_LENGTH = 2
MAX_SEARCH_LENGTH = 200
MAX_EMPLOYEE_RESULTS = 20
MAX_TEMPLATE_RESULTS = 10
MAX_DOCUMENT_RESULTS = 10


def now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def validate_pagination(offset: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    offset = offset or 0
    if offset < 0:
        raise HTTPException(status_code=400, detail="Невірний параметр offset")
    limit = min(max(limit or DEFAULT_PAGINATION_LIMIT, 1), MAX_PAGINATION_LIMIT)
    return offset, limit


def find_by_id(rows: List[Row], id_field: str, value: str) -> Optional[Row]:
    for row in rows:
        if row.get(id_field) == value:
            return row
    return None


def index_of(rows: List[Row], id_field: str, value: str) -> int:
    for i, row in enumerate(rows):
        if row.get(id_field) == value:
            return i
    return -1
