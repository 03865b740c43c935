# progress_hub/schemas/task.py

from __future__ import annotations

from enum import Enum

from pydantic import Field

from progress_hub.schemas.common import CamelModel, EntityBase, UtcDatetime


class TaskStatus(str, Enum):
    """
    Lifecycle status of a task.
    """

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELAYED = "delayed"


# --------------------------------------------------------------------------
# Draft schema (add)
# --------------------------------------------------------------------------

class TaskDraft(CamelModel):
    """
    Fields supplied by the caller when creating a task.
    """

    task_name: str = Field(..., min_length=1, examples=["Migrate billing batch"])
    project_name: str = Field(default="", examples=["Billing renewal"])
    client_name: str = Field(default="", examples=["Acme Corp"])
    staff_id: str = Field(
        default="",
        description="Owning staff member id. Not enforced as a foreign key.",
    )
    start_date: UtcDatetime | None = None
    deadline: UtcDatetime
    completion_rate: int = Field(
        default=0,
        ge=0,
        le=100,
        description="Progress in percent, 0 to 100 inclusive.",
        examples=[40],
    )
    status: TaskStatus = TaskStatus.NOT_STARTED
    overview: str = ""
    achievements: str = ""
    results: str = ""
    notes: str = ""
    technologies: list[str] = Field(default_factory=list, examples=[["Python", "PostgreSQL"]])
    created_from_meeting_id: str | None = Field(
        default=None,
        description="Meeting whose decision spawned this task.",
    )
    created_from_decision_id: str | None = Field(
        default=None,
        description="Decision that spawned this task; used to avoid duplicates.",
    )
    report_to_meeting_id: str | None = Field(
        default=None,
        description="Meeting this task reports into.",
    )


# --------------------------------------------------------------------------
# Patch schema (update)
# --------------------------------------------------------------------------

class TaskPatch(CamelModel):
    """
    All fields optional; only provided fields are updated.
    """

    task_name: str | None = Field(default=None, min_length=1)
    project_name: str | None = None
    client_name: str | None = None
    staff_id: str | None = None
    start_date: UtcDatetime | None = None
    deadline: UtcDatetime | None = None
    completion_rate: int | None = Field(default=None, ge=0, le=100)
    status: TaskStatus | None = None
    overview: str | None = None
    achievements: str | None = None
    results: str | None = None
    notes: str | None = None
    technologies: list[str] | None = None
    created_from_meeting_id: str | None = None
    created_from_decision_id: str | None = None
    report_to_meeting_id: str | None = None


class Task(EntityBase, TaskDraft):
    """
    Stored representation of a task.
    """
