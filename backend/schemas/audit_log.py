from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class AuditLogCreate(BaseModel):
    table_name: str
    record_id: int
    changed_by: str
    action: str = Field(..., max_length=16)
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None


class AuditLogEntry(BaseModel):
    """One change to a record, newest first in history listings."""
    id: int
    action: str
    changed_by: str
    changed_at: datetime
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True
