# progress_hub/schemas/status.py
from datetime import datetime

from pydantic import BaseModel, Field


class StoreStatusRead(BaseModel):
    """
    Observable state of the store, used by clients to show sync banners.
    """

    backend: str = Field(..., description="Name of the configured persistence adapter.", examples=["json_file"])
    loaded: bool = Field(..., description="True once the initial snapshot has been applied.")
    quota_exceeded: bool = Field(
        ...,
        description=(
            "True while the store is in quota-exceeded mode. Reads keep working "
            "from local state; writes are rejected until the mode is cleared."
        ),
    )
    last_error: str | None = Field(
        None,
        description="Message of the most recent failed operation, cleared on the next success.",
    )
    last_error_code: str | None = Field(None, examples=["PERSISTENCE_ERROR"])
    versions: dict[str, int] = Field(
        ...,
        description="Monotonic per-collection version stamps of the applied state.",
        examples=[{"staff": 1, "tasks": 4, "meetings": 2, "reports": 0, "shifts": 0}],
    )
    backend_revision: int | None = Field(
        None,
        description="Highest revision acknowledged by backends that number their writes.",
    )
    last_backup_at: datetime | None = None
    backup_recommended: bool = Field(
        ...,
        description="True when no export was taken yet or the last one is older than 7 days.",
    )


class TaskStatusCounts(BaseModel):
    total: int = Field(..., examples=[12])
    not_started: int = Field(..., examples=[3])
    in_progress: int = Field(..., examples=[6])
    completed: int = Field(..., examples=[2])
    delayed: int = Field(..., examples=[1])


class DashboardSummary(BaseModel):
    """
    Headline numbers for the data-management view.
    """

    staff_count: int
    meeting_count: int
    report_count: int
    shift_count: int
    tasks: TaskStatusCounts
    data_size_bytes: int = Field(
        ...,
        description="Size of the serialized export document in bytes.",
    )
    storage_usage_pct: float | None = Field(
        None,
        description="data_size_bytes relative to the configured storage limit, capped at 100.",
    )


class ImportSummary(BaseModel):
    """
    Result of a destructive import.
    """

    imported: dict[str, int] = Field(
        ...,
        description="Number of entities now stored per collection.",
        examples=[{"staff": 3, "tasks": 12, "meetings": 4, "reports": 2, "shifts": 0}],
    )
    versions: dict[str, int] = Field(..., description="Version stamps after the import.")
