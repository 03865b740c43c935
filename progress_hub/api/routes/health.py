# progress_hub/api/routes/health.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from progress_hub.api.dependencies.store import get_app_settings, get_store
from progress_hub.core.config import Settings
from progress_hub.services.store import AppStore


router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """
    Response schema for the health check endpoint.
    """

    status: str = Field(
        ...,
        description="Overall health status of the service process.",
        examples=["ok"],
    )
    app_name: str = Field(
        ...,
        description="Human-friendly name of the running application.",
        examples=["Progress Hub"],
    )
    environment: str = Field(
        ...,
        description="Current deployment environment (local/dev/stage/prod).",
        examples=["local"],
    )
    storage_backend: str = Field(
        ...,
        description="Persistence adapter the store is running on.",
        examples=["json_file"],
    )
    timestamp_utc: datetime = Field(
        ...,
        description="Server-side timestamp (UTC) at which this health check was generated.",
        examples=["2025-01-01T10:30:00Z"],
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check for the Progress Hub service",
    description=(
        "Lightweight endpoint to verify that the backend is up and responding.\n\n"
        "It does not contact the storage backend; use `GET /status` to see "
        "whether the last persistence call succeeded."
    ),
    responses={
        200: {
            "description": "Service is healthy and responding as expected.",
            "content": {
                "application/json": {
                    "example": {
                        "status": "ok",
                        "app_name": "Progress Hub",
                        "environment": "local",
                        "storage_backend": "json_file",
                        "timestamp_utc": "2025-01-01T10:30:00Z",
                    }
                }
            },
        }
    },
)
async def health_check(
    settings: Settings = Depends(get_app_settings),
    store: AppStore = Depends(get_store),
) -> HealthResponse:
    return HealthResponse(
        status="ok",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        storage_backend=store.adapter.name,
        timestamp_utc=datetime.now(tz=timezone.utc),
    )
