# progress_hub/api/routes/collections.py
from http import HTTPStatus
from typing import List

from fastapi import APIRouter, Depends, Path, Response

from progress_hub.api.dependencies.store import get_store, get_workflow
from progress_hub.schemas.common import CollectionKind
from progress_hub.schemas.snapshot import COLLECTION_SPECS
from progress_hub.services.meeting_workflow import MeetingWorkflow
from progress_hub.services.store import AppStore

_TITLES = {
    CollectionKind.STAFF: ("Staff", "staff member"),
    CollectionKind.TASKS: ("Tasks", "task"),
    CollectionKind.MEETINGS: ("Meetings", "meeting"),
    CollectionKind.REPORTS: ("Reports", "monthly report"),
    CollectionKind.SHIFTS: ("Shifts", "shift"),
}

_ERROR_RESPONSES = {
    422: {"description": "The payload failed validation; nothing was changed."},
    503: {"description": "The storage backend could not be reached; nothing was changed."},
    507: {"description": "The storage backend reported a quota or plan limit; writes are paused."},
}

_WRITE_NOTES = {
    CollectionKind.MEETINGS: (
        "\n\nDecisions flagged `isTaskCreated` without a `taskId` are turned into "
        "tasks and linked, exactly as `POST /meetings/save` does."
    ),
}


def build_collection_router(kind: CollectionKind) -> APIRouter:
    """
    CRUD router for one collection, backed by the shared store.

    Every write goes through the store, so it is persisted before the
    response is sent and in-memory state only changes on success. Meeting
    writes go through `MeetingWorkflow` so flagged decisions become tasks.
    """
    spec = COLLECTION_SPECS[kind]
    tag, noun = _TITLES[kind]
    write_note = _WRITE_NOTES.get(kind, "")
    router = APIRouter(prefix=f"/{kind.value}", tags=[tag])

    @router.get(
        "",
        response_model=List[spec.model],
        summary=f"List {kind.value}",
        description=f"Return every {noun} currently held by the store, in insertion order.",
    )
    async def list_items(store: AppStore = Depends(get_store)):
        return store.items(kind)

    @router.post(
        "",
        response_model=spec.model,
        status_code=HTTPStatus.CREATED,
        summary=f"Create a {noun}",
        description=(
            f"Validate the draft, assign an id and timestamps, persist the whole "
            f"{kind.value} collection and return the stored {noun}."
            + write_note
        ),
        responses=_ERROR_RESPONSES,
    )
    async def create_item(
        payload: spec.draft,
        store: AppStore = Depends(get_store),
        workflow: MeetingWorkflow = Depends(get_workflow),
    ):
        if kind is CollectionKind.MEETINGS:
            return (await workflow.save_meeting(payload)).meeting
        return await store.add(kind, payload)

    @router.get(
        "/{item_id}",
        response_model=spec.model,
        summary=f"Get a {noun}",
        responses={404: {"description": f"No {noun} with this id."}},
    )
    async def get_item(
        item_id: str = Path(..., description=f"Id of the {noun}."),
        store: AppStore = Depends(get_store),
    ):
        return store.get(kind, item_id)

    @router.patch(
        "/{item_id}",
        response_model=spec.model,
        summary=f"Update a {noun}",
        description=(
            "Merge the provided fields over the stored entity. Omitted fields are "
            "left untouched and `updatedAt` is refreshed."
            + write_note
        ),
        responses={404: {"description": f"No {noun} with this id."}, **_ERROR_RESPONSES},
    )
    async def update_item(
        payload: spec.patch,
        item_id: str = Path(..., description=f"Id of the {noun}."),
        store: AppStore = Depends(get_store),
        workflow: MeetingWorkflow = Depends(get_workflow),
    ):
        if kind is CollectionKind.MEETINGS:
            return (await workflow.update_meeting(item_id, payload)).meeting
        return await store.update(kind, item_id, payload)

    @router.delete(
        "/{item_id}",
        status_code=HTTPStatus.NO_CONTENT,
        summary=f"Delete a {noun}",
        description=(
            f"Remove the {noun} and persist the remaining collection. Deleting an "
            "id that does not exist is a no-op. Nothing cascades to other collections."
        ),
        responses={k: v for k, v in _ERROR_RESPONSES.items() if k != 422},
    )
    async def delete_item(
        item_id: str = Path(..., description=f"Id of the {noun}."),
        store: AppStore = Depends(get_store),
    ) -> Response:
        await store.delete(kind, item_id)
        return Response(status_code=HTTPStatus.NO_CONTENT)

    return router


routers = [build_collection_router(kind) for kind in CollectionKind]
