# progress_hub/api/routes/reports.py
from http import HTTPStatus

from fastapi import APIRouter, Depends

from progress_hub.api.dependencies.store import get_store
from progress_hub.schemas.report import MonthlyReport, MonthlyReportRequest
from progress_hub.services.monthly_report import generate_monthly_report
from progress_hub.services.store import AppStore

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post(
    "/generate",
    response_model=MonthlyReport,
    status_code=HTTPStatus.CREATED,
    summary="Generate a monthly report from current tasks",
    description=(
        "Build a report for one staff member (looked up by name) and client "
        "covering the given calendar month.\n\n"
        "Tasks are included when they belong to that staff member and client "
        "and were last updated (or created) within the month. Their reportable "
        "fields are copied, so later task edits do not alter the report. An "
        "unknown staff name produces a report without tasks."
    ),
    responses={
        201: {
            "description": "Report generated and stored.",
            "content": {
                "application/json": {
                    "example": {
                        "id": "1731580800123456789-k3j9x0a2q",
                        "clientName": "Acme Corp",
                        "staffName": "Hanako Sato",
                        "year": 2025,
                        "month": 11,
                        "startDate": "2025-11-01T00:00:00Z",
                        "endDate": "2025-11-30T23:59:59Z",
                        "tasks": [
                            {
                                "projectName": "Billing renewal",
                                "overview": "Batch migration",
                                "achievements": "Cut-over rehearsal done",
                                "results": "",
                                "technologies": ["Python"],
                                "completionRate": 80,
                            }
                        ],
                        "comments": "",
                        "issues": "",
                        "nextMonthPlan": "",
                        "upcomingTasks": [],
                        "generatedAt": "2025-12-01T09:00:00Z",
                        "imageUrl": None,
                        "createdAt": "2025-12-01T09:00:00Z",
                        "updatedAt": "2025-12-01T09:00:00Z",
                    }
                }
            },
        },
        422: {"description": "Invalid year/month or missing names."},
        503: {"description": "The storage backend could not be reached."},
        507: {"description": "The storage backend reported a quota or plan limit."},
    },
)
async def generate_report(
    payload: MonthlyReportRequest,
    store: AppStore = Depends(get_store),
) -> MonthlyReport:
    return await generate_monthly_report(store, payload)
