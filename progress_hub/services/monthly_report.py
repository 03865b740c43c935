# progress_hub/services/monthly_report.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from progress_hub.core.utils import month_bounds
from progress_hub.schemas.report import (
    MonthlyReport,
    MonthlyReportDraft,
    MonthlyReportRequest,
    ReportTaskSnapshot,
)
from progress_hub.schemas.staff import StaffMember
from progress_hub.schemas.task import Task
from progress_hub.services.store import AppStore

logger = logging.getLogger(__name__)


def find_staff_by_name(staff: Sequence[StaffMember], name: str) -> Optional[StaffMember]:
    for member in staff:
        if member.name == name:
            return member
    return None


def select_report_tasks(
    tasks: Sequence[Task],
    staff_id: str,
    client_name: str,
    start: datetime,
    end: datetime,
) -> List[Task]:
    """
    Tasks owned by `staff_id` for `client_name` whose last activity falls
    inside [start, end].

    "Last activity" is `updatedAt`, falling back to `createdAt`.
    """
    selected: List[Task] = []
    for task in tasks:
        if task.staff_id != staff_id or task.client_name != client_name:
            continue
        touched = task.updated_at or task.created_at
        if start <= touched <= end:
            selected.append(task)
    return selected


def snapshot_task(task: Task) -> ReportTaskSnapshot:
    return ReportTaskSnapshot(
        project_name=task.project_name,
        overview=task.overview,
        achievements=task.achievements,
        results=task.results,
        technologies=list(task.technologies),
        completion_rate=task.completion_rate,
    )


async def generate_monthly_report(store: AppStore, request: MonthlyReportRequest) -> MonthlyReport:
    """
    Generate and persist a monthly report for one staff member and client.

    Steps
    -----
    1) Compute the calendar-month boundaries for (year, month).
    2) Look the staff member up by name. An unknown name yields a report
       without tasks.
    3) Select that member's tasks for the client whose updatedAt (or
       createdAt) lies within the month and copy their reportable fields.
    4) Store the report through the regular `add` path.

    The report is a point-in-time copy; later task edits do not change it.
    """
    start, end = month_bounds(request.year, request.month)

    member = find_staff_by_name(store.staff.all(), request.staff_name)
    if member is None:
        logger.info("No staff member named %r; generating report without tasks", request.staff_name)
        tasks: List[Task] = []
    else:
        tasks = select_report_tasks(store.tasks.all(), member.id, request.client_name, start, end)

    draft = MonthlyReportDraft(
        client_name=request.client_name,
        staff_name=request.staff_name,
        year=request.year,
        month=request.month,
        tasks=[snapshot_task(task) for task in tasks],
        comments=request.comments,
        issues=request.issues,
        next_month_plan=request.next_month_plan,
        upcoming_tasks=request.upcoming_tasks,
        image_url=request.image_url,
    )

    report = await store.reports.add(draft)
    logger.info(
        "Generated report %s for %s / %s %04d-%02d with %d task(s)",
        report.id,
        request.staff_name,
        request.client_name,
        request.year,
        request.month,
        len(tasks),
    )
    return report
