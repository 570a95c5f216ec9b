from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from .section import utcnow


class SaveStatus(str, Enum):
    idle = "idle"
    saving = "saving"
    saved = "saved"
    error = "error"


class SchedulerState(str, Enum):
    idle = "idle"
    armed = "armed"
    saving = "saving"


class Notice(BaseModel):
    """A dismissible message shown to the editor."""

    id: int
    level: Literal["info", "success", "warning", "error"]
    message: str
    created_at: datetime = Field(default_factory=utcnow)


class FieldIssue(BaseModel):
    """A validation problem attached to one field of one section."""

    section_id: str
    field: str
    message: str


__all__ = ["FieldIssue", "Notice", "SaveStatus", "SchedulerState"]
