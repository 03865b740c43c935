# tests/test_monthly_report_service.py
from datetime import datetime, timezone

import pytest

from conftest import FixedClock, staff_draft, task_draft
from progress_hub.core.utils import month_bounds
from progress_hub.schemas.report import MonthlyReportRequest
from progress_hub.services.monthly_report import generate_monthly_report
from progress_hub.services.store import AppStore


def test_month_bounds_cover_whole_month():
    start, end = month_bounds(2024, 2)

    assert start == datetime(2024, 2, 1, 0, 0, 0, tzinfo=timezone.utc)
    assert end == datetime(2024, 2, 29, 23, 59, 59, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_report_includes_only_matching_tasks_touched_in_month(adapter):
    clock = FixedClock(datetime(2025, 11, 5, 9, 0, tzinfo=timezone.utc))
    store = AppStore(adapter, clock=clock)
    await store.load()

    member = await store.staff.add(staff_draft())
    other = await store.staff.add(staff_draft(name="Taro Suzuki"))

    included = await store.tasks.add(
        task_draft(staffId=member.id, achievements="Cut-over rehearsal done", completionRate=80)
    )
    await store.tasks.add(task_draft(staffId=member.id, clientName="Other Client"))
    await store.tasks.add(task_draft(staffId=other.id))

    clock.now = datetime(2025, 12, 2, 9, 0, tzinfo=timezone.utc)
    await store.tasks.add(task_draft(staffId=member.id, taskName="Next month"))

    report = await generate_monthly_report(
        store,
        MonthlyReportRequest(
            client_name="Acme Corp",
            staff_name="Hanako Sato",
            year=2025,
            month=11,
            comments="Steady month",
        ),
    )

    assert report.start_date == datetime(2025, 11, 1, tzinfo=timezone.utc)
    assert report.end_date == datetime(2025, 11, 30, 23, 59, 59, tzinfo=timezone.utc)
    assert len(report.tasks) == 1
    snapshot = report.tasks[0]
    assert snapshot.project_name == included.project_name
    assert snapshot.achievements == "Cut-over rehearsal done"
    assert snapshot.completion_rate == 80
    assert report.comments == "Steady month"
    assert store.reports.get(report.id) == report


@pytest.mark.asyncio
async def test_report_is_not_affected_by_later_task_edits(store):
    await store.load()
    member = await store.staff.add(staff_draft())
    task = await store.tasks.add(task_draft(staffId=member.id, completionRate=30))

    report = await generate_monthly_report(
        store,
        MonthlyReportRequest(client_name="Acme Corp", staff_name="Hanako Sato", year=2025, month=11),
    )
    await store.tasks.update(task.id, {"completionRate": 100})

    assert store.reports.get(report.id).tasks[0].completion_rate == 30


@pytest.mark.asyncio
async def test_unknown_staff_name_yields_empty_task_list(store):
    await store.load()
    await store.tasks.add(task_draft())

    report = await generate_monthly_report(
        store,
        MonthlyReportRequest(client_name="Acme Corp", staff_name="Nobody", year=2025, month=11),
    )

    assert report.tasks == []
    assert report.staff_name == "Nobody"
