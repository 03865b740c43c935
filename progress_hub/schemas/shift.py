# progress_hub/schemas/shift.py

from __future__ import annotations

from datetime import date as date_type

from pydantic import Field

from progress_hub.schemas.common import CamelModel, EntityBase

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class ShiftDraft(CamelModel):
    """
    A single working shift at a client site.
    """

    client_name: str = Field(default="", examples=["Acme Corp"])
    staff_id: str = Field(
        default="",
        description="Free-text staff identifier; not necessarily a staff member id.",
    )
    date: date_type = Field(..., examples=["2025-11-14"])
    start_time: str = Field(..., pattern=HHMM_PATTERN, examples=["09:00"])
    end_time: str = Field(..., pattern=HHMM_PATTERN, examples=["18:00"])
    notes: str = ""


class ShiftPatch(CamelModel):
    client_name: str | None = None
    staff_id: str | None = None
    date: date_type | None = None
    start_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    end_time: str | None = Field(default=None, pattern=HHMM_PATTERN)
    notes: str | None = None


class Shift(EntityBase, ShiftDraft):
    """
    Stored representation of a shift.
    """
