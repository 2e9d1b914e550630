# modules/common/validators.py
import re
from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException, status

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date(value) -> Optional[date]:
    """YYYY-MM-DD -> date; None for empty, malformed or impossible dates"""
    text = str(value or "").strip()
    if not DATE_RE.match(text):
        return None
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        return None


def date_field_error(value, field_name: str) -> Optional[str]:
    text = str(value or "").strip()
    if not text:
        return None
    if not DATE_RE.match(text):
        return f"Невірний формат дати для поля {field_name} (очікується YYYY-MM-DD)"
    if parse_date(text) is None:
        return f"Невірна календарна дата для поля {field_name}: {text}"
    return None


def validate_date_field(value, field_name: str) -> None:
    error = date_field_error(value, field_name)
    if error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)


def require(value, message: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return text


def add_years(day: date, years: int) -> date:
    """Same calendar day ``years`` later; 29 February falls on the 28th in common years."""
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        return day.replace(year=day.year + years, day=28)
