# progress_hub/api/routes/meetings.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from progress_hub.api.dependencies.store import get_workflow
from progress_hub.schemas.meeting import MeetingDraft, MeetingSaveResult
from progress_hub.services.meeting_workflow import MeetingWorkflow

router = APIRouter(prefix="/meetings", tags=["Meetings"])


@router.post(
    "/save",
    response_model=MeetingSaveResult,
    summary="Save a meeting and promote its decisions into tasks",
    description=(
        "Add a meeting (no `meetingId`) or update an existing one, then create "
        "one task for every decision with `isTaskCreated: true` that has no "
        "`taskId` yet.\n\n"
        "Saving the same meeting again never creates a second task for a "
        "decision: an existing task created from that decision is linked instead."
    ),
    responses={
        404: {"description": "`meetingId` does not refer to a stored meeting."},
        422: {"description": "The meeting failed validation, or a decision was re-pointed to another task."},
        503: {"description": "The storage backend could not be reached."},
        507: {"description": "The storage backend reported a quota or plan limit."},
    },
)
async def save_meeting(
    payload: MeetingDraft,
    meeting_id: Optional[str] = Query(
        default=None,
        alias="meetingId",
        description="Id of the meeting to update. Omit to create a new meeting.",
    ),
    workflow: MeetingWorkflow = Depends(get_workflow),
) -> MeetingSaveResult:
    return await workflow.save_meeting(payload, meeting_id=meeting_id)
