# progress_hub/schemas/meeting.py

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator

from progress_hub.core.errors import ValidationError
from progress_hub.core.utils import generate_id
from progress_hub.schemas.common import CamelModel, EntityBase, UtcDatetime
from progress_hub.schemas.task import Task


class DecisionDraft(CamelModel):
    """
    A recorded outcome of a meeting, optionally promoted into a task.

    `task_id` stays null until the derived task exists; once set it is never
    reassigned. Decisions submitted without an id get a fresh one.
    """

    id: str = Field(default_factory=generate_id)
    content: str = Field(default="", examples=["Prepare the Q3 migration plan"])
    task_id: str | None = None
    is_task_created: bool = Field(
        default=False,
        description="Request (or record) that a task is derived from this decision.",
    )


class Decision(DecisionDraft):
    """
    A decision as stored on a meeting. Its id never changes.
    """

    id: str = Field(..., min_length=1)


def fill_decision_ids(meeting_id: str, decisions: list[Any]) -> list[Any]:
    """
    Give id-less stored decisions an id derived from the meeting id and their
    position, so the same document always validates to the same ids.
    """
    filled = []
    for index, decision in enumerate(decisions):
        if isinstance(decision, dict) and not decision.get("id"):
            decision = {**decision, "id": f"{meeting_id}-decision-{index}"}
        filled.append(decision)
    return filled


class MeetingDraft(CamelModel):
    """
    Fields supplied by the caller when recording a meeting.
    """

    date: UtcDatetime
    title: str = Field(default="", examples=["Monthly sync"])
    client_name: str = Field(default="", examples=["Acme Corp"])
    staff_ids: list[str] = Field(default_factory=list)
    participants: list[str] = Field(
        default_factory=list,
        description="Free-text names of external participants.",
    )
    agenda: str = ""
    decisions: list[DecisionDraft] = Field(default_factory=list)
    actions: str = ""
    notes: str = ""
    next_meeting_date: UtcDatetime | None = None
    next_agenda: str = ""


class MeetingPatch(CamelModel):
    """
    All fields optional; `decisions`, when given, replaces the whole list.
    """

    date: UtcDatetime | None = None
    title: str | None = None
    client_name: str | None = None
    staff_ids: list[str] | None = None
    participants: list[str] | None = None
    agenda: str | None = None
    decisions: list[DecisionDraft] | None = None
    actions: str | None = None
    notes: str | None = None
    next_meeting_date: UtcDatetime | None = None
    next_agenda: str | None = None


class Meeting(EntityBase, MeetingDraft):
    """
    Stored representation of a meeting.
    """

    decisions: list[Decision] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _stable_decision_ids(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        decisions = data.get("decisions")
        if not isinstance(decisions, list):
            return data
        return {**data, "decisions": fill_decision_ids(str(data.get("id") or "meeting"), decisions)}


def carry_decision_links(previous: Meeting, updated: Meeting) -> Meeting:
    """
    Keep decision -> task links stable across updates.

    A decision that already points at a task keeps that pointer when the
    incoming copy omits it. Pointing an already linked decision at a
    different task is rejected.
    """
    linked = {d.id: d.task_id for d in previous.decisions if d.task_id is not None}
    if not linked:
        return updated

    decisions = []
    for decision in updated.decisions:
        existing_task_id = linked.get(decision.id)
        if existing_task_id is None:
            decisions.append(decision)
        elif decision.task_id is None:
            decisions.append(
                decision.model_copy(update={"task_id": existing_task_id, "is_task_created": True})
            )
        elif decision.task_id != existing_task_id:
            raise ValidationError(
                f"Decision {decision.id} is already linked to task {existing_task_id}."
            )
        else:
            decisions.append(decision)

    return updated.model_copy(update={"decisions": decisions})


class MeetingSaveResult(CamelModel):
    """
    Outcome of saving a meeting through the decision workflow.
    """

    meeting: Meeting
    created_tasks: list[Task] = Field(
        default_factory=list,
        description="Tasks created for decisions flagged with isTaskCreated.",
    )
    linked_tasks: list[Task] = Field(
        default_factory=list,
        description="Existing tasks re-linked to their decision instead of being duplicated.",
    )
