# progress_hub/services/meeting_workflow.py
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import pydantic

from progress_hub.core.utils import utc_now
from progress_hub.schemas.meeting import Decision, Meeting, MeetingDraft, MeetingSaveResult
from progress_hub.schemas.task import Task, TaskDraft, TaskStatus
from progress_hub.services.store import AppStore, to_validation_error

logger = logging.getLogger(__name__)


def seed_task_from_decision(meeting: Meeting, decision: Decision) -> TaskDraft:
    """
    Build the task draft for a decision that should become a task.
    """
    return TaskDraft(
        task_name=decision.content or meeting.title or "Untitled decision",
        project_name=meeting.title,
        client_name=meeting.client_name,
        staff_id=meeting.staff_ids[0] if meeting.staff_ids else "",
        deadline=meeting.next_meeting_date or utc_now(),
        completion_rate=0,
        status=TaskStatus.NOT_STARTED,
        overview=f"Decided in meeting '{meeting.title}'",
        created_from_meeting_id=meeting.id,
        created_from_decision_id=decision.id,
    )


class _Guard:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.holders = 0


class MeetingWorkflow:
    """
    Saves meetings and promotes flagged decisions into tasks.

    Guarantees
    ----------
    - Saves of the same meeting run one at a time. The per-meeting lock only
      exists while a save of that meeting is running or waiting.
    - A decision produces at most one task. Before creating a task the
      workflow looks for an existing one carrying the decision's id in
      `createdFromDecisionId` and links that instead. A save interrupted
      after the task was created but before the meeting was re-saved is
      therefore repaired by saving again.
    """

    def __init__(self, store: AppStore) -> None:
        self._store = store
        self._guards: Dict[str, _Guard] = {}

    @property
    def active_guards(self) -> int:
        """Number of meetings with a save running or waiting."""
        return len(self._guards)

    async def save_meeting(self, draft: Any, meeting_id: Optional[str] = None) -> MeetingSaveResult:
        """
        Add (no `meeting_id`) or replace a meeting, then promote its flagged
        decisions into tasks.
        """
        try:
            meeting_draft = draft if isinstance(draft, MeetingDraft) else MeetingDraft.model_validate(draft)
        except pydantic.ValidationError as exc:
            raise to_validation_error(exc, "meeting") from exc

        if meeting_id is None:
            meeting = await self._store.meetings.add(meeting_draft)
            async with self._guard(meeting.id):
                return await self._promote_decisions(meeting.id)

        return await self.update_meeting(meeting_id, meeting_draft.model_dump())

    async def update_meeting(self, meeting_id: str, patch: Any) -> MeetingSaveResult:
        """
        Merge `patch` over a stored meeting, then promote its flagged decisions.
        """
        async with self._guard(meeting_id):
            await self._store.meetings.update(meeting_id, patch)
            return await self._promote_decisions(meeting_id)

    def find_task_for_decision(self, decision_id: str) -> Optional[Task]:
        for task in self._store.tasks.all():
            if task.created_from_decision_id == decision_id:
                return task
        return None

    @contextlib.asynccontextmanager
    async def _guard(self, meeting_id: str) -> AsyncIterator[None]:
        guard = self._guards.get(meeting_id)
        if guard is None:
            guard = self._guards[meeting_id] = _Guard()
        guard.holders += 1
        try:
            async with guard.lock:
                yield
        finally:
            guard.holders -= 1
            if guard.holders == 0:
                del self._guards[meeting_id]

    async def _promote_decisions(self, meeting_id: str) -> MeetingSaveResult:
        meeting: Meeting = self._store.meetings.get(meeting_id)

        created: List[Task] = []
        linked: List[Task] = []
        decisions: List[Decision] = []

        for decision in meeting.decisions:
            if not decision.is_task_created or decision.task_id is not None:
                decisions.append(decision)
                continue

            task = self.find_task_for_decision(decision.id)
            if task is None:
                task = await self._store.tasks.add(seed_task_from_decision(meeting, decision))
                created.append(task)
                logger.info("Created task %s from decision %s of meeting %s", task.id, decision.id, meeting.id)
            else:
                linked.append(task)
                logger.info("Re-linked existing task %s to decision %s", task.id, decision.id)

            decisions.append(decision.model_copy(update={"task_id": task.id}))

        if created or linked:
            meeting = await self._store.meetings.update(
                meeting_id,
                {"decisions": [decision.model_dump() for decision in decisions]},
            )

        return MeetingSaveResult(meeting=meeting, created_tasks=created, linked_tasks=linked)
