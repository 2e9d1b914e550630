# modules/status_events/schemas.py
from typing import Optional

from pydantic import BaseModel, ConfigDict


class StatusEventIn(BaseModel):
    """Body of create/update; presence and format are checked in services."""
    status: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    model_config = ConfigDict(extra="ignore")

