# modules/reprimands/schemas.py
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ReprimandIn(BaseModel):
    record_date: Optional[str] = None
    record_type: Optional[str] = None
    order_number: Optional[str] = None
    note: Optional[str] = None
    model_config = ConfigDict(extra="ignore")
