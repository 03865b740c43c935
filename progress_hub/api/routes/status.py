# progress_hub/api/routes/status.py
from fastapi import APIRouter, Depends

from progress_hub.api.dependencies.store import get_app_settings, get_store
from progress_hub.core.config import Settings
from progress_hub.schemas.status import DashboardSummary, StoreStatusRead
from progress_hub.services.dashboard import compute_dashboard_summary
from progress_hub.services.store import AppStore

router = APIRouter(tags=["Status"])


@router.get(
    "/status",
    response_model=StoreStatusRead,
    summary="Sync status of the store",
    description=(
        "Report which backend is in use, whether the initial load finished, "
        "the last persistence error (if the most recent operation failed), "
        "quota-exceeded mode and backup freshness.\n\n"
        "Clients use this to show an error banner and a backup reminder."
    ),
    responses={
        200: {
            "description": "Current store status.",
            "content": {
                "application/json": {
                    "example": {
                        "backend": "remote_api",
                        "loaded": True,
                        "quota_exceeded": True,
                        "last_error": "Remote saveCollection rejected by plan limit (status=429)",
                        "last_error_code": "QUOTA_EXCEEDED",
                        "versions": {"staff": 1, "tasks": 5, "meetings": 2, "reports": 1, "shifts": 1},
                        "backend_revision": None,
                        "last_backup_at": None,
                        "backup_recommended": True,
                    }
                }
            },
        }
    },
)
async def store_status(store: AppStore = Depends(get_store)) -> StoreStatusRead:
    return store.status_view()


@router.get(
    "/dashboard/summary",
    response_model=DashboardSummary,
    summary="Headline counts and data size",
    description=(
        "Counts per collection, task counts by status and the approximate "
        "serialized size of the data set relative to the configured storage limit."
    ),
)
async def dashboard_summary(
    store: AppStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> DashboardSummary:
    return compute_dashboard_summary(store, max_bytes=settings.STORAGE_MAX_BYTES)
