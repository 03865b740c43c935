# progress_hub/api/routes/internal.py
from http import HTTPStatus
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from progress_hub.api.dependencies.internal_auth import verify_internal_api_key
from progress_hub.api.dependencies.store import get_store
from progress_hub.schemas.status import ImportSummary, StoreStatusRead
from progress_hub.services.backup import import_document
from progress_hub.services.store import AppStore

router = APIRouter(
    prefix="/internal",
    tags=["Internal"],
    dependencies=[Depends(verify_internal_api_key)],
)


@router.post(
    "/backup/import",
    response_model=ImportSummary,
    status_code=HTTPStatus.OK,
    summary="Replace all data with a backup document",
    description=(
        "**Destructive.** Validates the uploaded backup document and then "
        "replaces every collection with its contents.\n\n"
        "The document must contain `staff`, `tasks`, `meetings` and `reports` "
        "arrays; `shifts` is optional. Every entity is validated before the "
        "first collection is written. Collections are then written one at a "
        "time; if the backend fails part-way, the collections written so far "
        "stay replaced and the error is returned.\n\n"
        "Protected via the `X-Internal-Api-Key` header when configured."
    ),
    responses={
        401: {"description": "Missing or invalid internal API key (if configured)."},
        422: {
            "description": "The document is not a valid backup; nothing was changed.",
            "content": {
                "application/json": {
                    "example": {
                        "detail": "Invalid data format: missing or non-array keys reports",
                        "code": "VALIDATION_ERROR",
                    }
                }
            },
        },
        503: {"description": "The storage backend could not be reached."},
        507: {"description": "The storage backend reported a quota or plan limit."},
    },
)
async def import_backup(
    document: Dict[str, Any] = Body(..., description="A document produced by GET /backup/export."),
    store: AppStore = Depends(get_store),
) -> ImportSummary:
    snapshot = await import_document(store, document)
    return ImportSummary(
        imported={key: len(items) for key, items in snapshot},
        versions=store.versions(),
    )


@router.post(
    "/quota/clear",
    response_model=StoreStatusRead,
    summary="Leave quota-exceeded mode",
    description=(
        "Re-enable writes after the storage plan limit was raised or data was "
        "cleaned up. The next write will reach the backend again; if the limit "
        "is still in place the store re-enters quota-exceeded mode."
    ),
    responses={401: {"description": "Missing or invalid internal API key (if configured)."}},
)
async def clear_quota(store: AppStore = Depends(get_store)) -> StoreStatusRead:
    store.clear_quota()
    return store.status_view()


@router.post(
    "/reload",
    response_model=StoreStatusRead,
    summary="Reload all collections from the backend",
    description=(
        "Discard in-memory state and load a fresh snapshot from the storage "
        "backend. Useful for backends without a push channel after another "
        "process changed the data."
    ),
    responses={
        401: {"description": "Missing or invalid internal API key (if configured)."},
        503: {"description": "The storage backend could not be reached; state is unchanged."},
    },
)
async def reload_store(store: AppStore = Depends(get_store)) -> StoreStatusRead:
    await store.load()
    return store.status_view()
