# progress_hub/main.py
import logging
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from progress_hub.adapters.base import PersistenceAdapter
from progress_hub.adapters.factory import build_adapter
from progress_hub.api.routes import backup, collections, health, internal, meetings, reports, status
from progress_hub.core.config import Settings, get_settings
from progress_hub.core.errors import (
    NotFoundError,
    PersistenceError,
    QuotaExceededError,
    StoreError,
    ValidationError,
)
from progress_hub.core.logging_config import configure_logging
from progress_hub.services.meeting_workflow import MeetingWorkflow
from progress_hub.services.store import AppStore

logger = logging.getLogger(__name__)


def status_for(exc: StoreError) -> HTTPStatus:
    # QuotaExceededError must be checked before its PersistenceError base
    if isinstance(exc, NotFoundError):
        return HTTPStatus.NOT_FOUND
    if isinstance(exc, ValidationError):
        return HTTPStatus.UNPROCESSABLE_ENTITY
    if isinstance(exc, QuotaExceededError):
        return HTTPStatus.INSUFFICIENT_STORAGE
    if isinstance(exc, PersistenceError):
        return HTTPStatus.SERVICE_UNAVAILABLE
    return HTTPStatus.INTERNAL_SERVER_ERROR


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    code = status_for(exc)
    body = {"detail": str(exc), "code": exc.code}
    if isinstance(exc, ValidationError) and exc.errors:
        body["errors"] = exc.errors
    if code >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.warning("%s %s failed with %s: %s", request.method, request.url.path, exc.code, exc)
    return JSONResponse(status_code=code, content=body)


def create_app(
    settings: Optional[Settings] = None,
    adapter: Optional[PersistenceAdapter] = None,
) -> FastAPI:
    """
    Application factory for the Progress Hub service.

    The persistence adapter is chosen from settings here, once, and handed to
    the store; pass `adapter` to run against a specific backend (tests).
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Local-first state service for a staffing and project office: staff,\n"
            "tasks, meetings, monthly reports and shifts, mirrored to a local JSON\n"
            "store, a spreadsheet-backed web app or a relational database."
        ),
        version="0.1.0",
    )

    store = AppStore(adapter or build_adapter(settings))
    app.state.settings = settings
    app.state.store = store
    app.state.meeting_workflow = MeetingWorkflow(store)

    app.add_exception_handler(StoreError, store_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(status.router)
    app.include_router(meetings.router)
    app.include_router(reports.router)
    for router in collections.routers:
        app.include_router(router)
    app.include_router(backup.router)
    app.include_router(internal.router)

    @app.on_event("startup")
    async def on_startup() -> None:
        try:
            await store.start()
        except StoreError as exc:
            # serve from empty state; /status reports the failure
            logger.error("Initial load from %s backend failed: %s", store.adapter.name, exc)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await store.stop()

    return app


app = create_app()
