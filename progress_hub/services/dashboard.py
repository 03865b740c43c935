# progress_hub/services/dashboard.py
from __future__ import annotations

from collections import Counter
from typing import Optional, Sequence

from progress_hub.schemas.status import DashboardSummary, TaskStatusCounts
from progress_hub.schemas.task import Task, TaskStatus
from progress_hub.services.backup import serialized_size
from progress_hub.services.store import AppStore


def count_tasks_by_status(tasks: Sequence[Task]) -> TaskStatusCounts:
    counts = Counter(task.status for task in tasks)
    return TaskStatusCounts(
        total=len(tasks),
        not_started=counts[TaskStatus.NOT_STARTED],
        in_progress=counts[TaskStatus.IN_PROGRESS],
        completed=counts[TaskStatus.COMPLETED],
        delayed=counts[TaskStatus.DELAYED],
    )


def compute_dashboard_summary(store: AppStore, max_bytes: Optional[int] = None) -> DashboardSummary:
    """
    Headline counts plus the approximate size of the data set.

    The size is measured on the export document, so it matches what a
    backup file would weigh. Usage is reported against `max_bytes` when a
    storage limit is configured.
    """
    snapshot = store.snapshot()
    size = serialized_size(snapshot.to_document())

    usage: Optional[float] = None
    if max_bytes:
        usage = round(min(size / max_bytes * 100, 100.0), 2)

    return DashboardSummary(
        staff_count=len(snapshot.staff),
        meeting_count=len(snapshot.meetings),
        report_count=len(snapshot.reports),
        shift_count=len(snapshot.shifts),
        tasks=count_tasks_by_status(snapshot.tasks),
        data_size_bytes=size,
        storage_usage_pct=usage,
    )
