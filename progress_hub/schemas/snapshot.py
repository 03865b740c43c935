# progress_hub/schemas/snapshot.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from pydantic import Field

from progress_hub.schemas.common import CamelModel, CollectionKind, EntityBase, UtcDatetime
from progress_hub.schemas.meeting import (
    Meeting,
    MeetingDraft,
    MeetingPatch,
    carry_decision_links,
)
from progress_hub.schemas.report import MonthlyReport, MonthlyReportDraft, MonthlyReportPatch
from progress_hub.schemas.shift import Shift, ShiftDraft, ShiftPatch
from progress_hub.schemas.staff import StaffDraft, StaffMember, StaffPatch
from progress_hub.schemas.task import Task, TaskDraft, TaskPatch


@dataclass(frozen=True)
class CollectionSpec:
    """
    Binds a collection kind to its models.

    `nested_fields` are merged one level deep on update instead of being
    replaced wholesale. `on_update` receives (previous, merged) entities and
    returns the entity to store.
    """

    kind: CollectionKind
    model: type[EntityBase]
    draft: type[CamelModel]
    patch: type[CamelModel]
    nested_fields: frozenset[str] = frozenset()
    on_update: Callable[[EntityBase, EntityBase], EntityBase] | None = None


COLLECTION_SPECS: dict[CollectionKind, CollectionSpec] = {
    CollectionKind.STAFF: CollectionSpec(
        kind=CollectionKind.STAFF,
        model=StaffMember,
        draft=StaffDraft,
        patch=StaffPatch,
        nested_fields=frozenset({"assignment_period", "contact"}),
    ),
    CollectionKind.TASKS: CollectionSpec(
        kind=CollectionKind.TASKS,
        model=Task,
        draft=TaskDraft,
        patch=TaskPatch,
    ),
    CollectionKind.MEETINGS: CollectionSpec(
        kind=CollectionKind.MEETINGS,
        model=Meeting,
        draft=MeetingDraft,
        patch=MeetingPatch,
        on_update=carry_decision_links,
    ),
    CollectionKind.REPORTS: CollectionSpec(
        kind=CollectionKind.REPORTS,
        model=MonthlyReport,
        draft=MonthlyReportDraft,
        patch=MonthlyReportPatch,
    ),
    CollectionKind.SHIFTS: CollectionSpec(
        kind=CollectionKind.SHIFTS,
        model=Shift,
        draft=ShiftDraft,
        patch=ShiftPatch,
    ),
}


class StoreSnapshot(CamelModel):
    """
    Point-in-time copy of all five collections as held by the store.
    """

    staff: list[StaffMember] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    meetings: list[Meeting] = Field(default_factory=list)
    reports: list[MonthlyReport] = Field(default_factory=list)
    shifts: list[Shift] = Field(default_factory=list)


class ExportDocument(CamelModel):
    """
    Backup file format.

    `staff`, `tasks`, `meetings` and `reports` must be present (possibly
    empty); `shifts` is optional for documents written by older exports.
    """

    staff: list[StaffMember]
    tasks: list[Task]
    meetings: list[Meeting]
    reports: list[MonthlyReport]
    shifts: list[Shift] = Field(default_factory=list)
    exported_at: UtcDatetime | None = None
