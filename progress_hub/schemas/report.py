# progress_hub/schemas/report.py

from __future__ import annotations

from pydantic import Field, model_validator

from progress_hub.core.utils import month_bounds, utc_now
from progress_hub.schemas.common import CamelModel, EntityBase, UtcDatetime


class ReportTaskSnapshot(CamelModel):
    """
    Copy of the reportable fields of a task at generation time.
    Not linked to the live task afterwards.
    """

    project_name: str = ""
    overview: str = ""
    achievements: str = ""
    results: str = ""
    technologies: list[str] = Field(default_factory=list)
    completion_rate: int = Field(default=0, ge=0, le=100)


class UpcomingTaskEntry(CamelModel):
    task_name: str = Field(..., min_length=1)
    details: str = ""


# --------------------------------------------------------------------------
# Draft schema (add)
# --------------------------------------------------------------------------

class MonthlyReportDraft(CamelModel):
    """
    Fields of a monthly report. `startDate`/`endDate` are always derived from
    `year`/`month` and any supplied values are overwritten.
    """

    client_name: str = Field(..., examples=["Acme Corp"])
    staff_name: str = Field(
        ...,
        description="Denormalized staff name (not an id).",
        examples=["Hanako Sato"],
    )
    year: int = Field(..., ge=1970, le=9999, examples=[2025])
    month: int = Field(..., ge=1, le=12, examples=[11])
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    tasks: list[ReportTaskSnapshot] = Field(default_factory=list)
    comments: str = ""
    issues: str = ""
    next_month_plan: str = ""
    upcoming_tasks: list[UpcomingTaskEntry] = Field(default_factory=list)
    generated_at: UtcDatetime | None = None
    image_url: str | None = None

    @model_validator(mode="after")
    def _derive_period(self):
        self.start_date, self.end_date = month_bounds(self.year, self.month)
        if self.generated_at is None:
            self.generated_at = utc_now()
        return self


# --------------------------------------------------------------------------
# Patch schema (update)
# --------------------------------------------------------------------------

class MonthlyReportPatch(CamelModel):
    client_name: str | None = None
    staff_name: str | None = None
    year: int | None = Field(default=None, ge=1970, le=9999)
    month: int | None = Field(default=None, ge=1, le=12)
    tasks: list[ReportTaskSnapshot] | None = None
    comments: str | None = None
    issues: str | None = None
    next_month_plan: str | None = None
    upcoming_tasks: list[UpcomingTaskEntry] | None = None
    image_url: str | None = None


class MonthlyReport(EntityBase, MonthlyReportDraft):
    """
    Stored representation of a monthly report.
    """


# --------------------------------------------------------------------------
# Generation request (POST /reports/generate)
# --------------------------------------------------------------------------

class MonthlyReportRequest(CamelModel):
    """
    Input for generating a report from the tasks currently in the store.
    """

    client_name: str = Field(..., min_length=1, examples=["Acme Corp"])
    staff_name: str = Field(..., min_length=1, examples=["Hanako Sato"])
    year: int = Field(..., ge=1970, le=9999, examples=[2025])
    month: int = Field(..., ge=1, le=12, examples=[11])
    comments: str = ""
    issues: str = ""
    next_month_plan: str = ""
    upcoming_tasks: list[UpcomingTaskEntry] = Field(default_factory=list)
    image_url: str | None = None
