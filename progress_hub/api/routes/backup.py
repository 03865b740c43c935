# progress_hub/api/routes/backup.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from progress_hub.api.dependencies.store import get_store
from progress_hub.core.utils import utc_now
from progress_hub.services.backup import export_document
from progress_hub.services.store import AppStore

router = APIRouter(prefix="/backup", tags=["Backup"])


@router.get(
    "/export",
    summary="Download a full backup",
    description=(
        "Return all five collections as one JSON document with ISO-8601 "
        "timestamps. The response is served as a file attachment and the "
        "time of this export is recorded as the last backup."
    ),
    responses={
        200: {
            "description": "Backup document.",
            "content": {
                "application/json": {
                    "example": {
                        "staff": [],
                        "tasks": [],
                        "meetings": [],
                        "reports": [],
                        "shifts": [],
                        "exportedAt": "2025-12-01T09:00:00Z",
                    }
                }
            },
        }
    },
)
async def export_backup(store: AppStore = Depends(get_store)) -> JSONResponse:
    document = export_document(store)
    filename = f"progress_hub_backup_{utc_now():%Y-%m-%d_%H%M%S}.json"
    return JSONResponse(
        content=document,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
