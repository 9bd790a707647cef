"""Meeting poll routes."""

from typing import List

from fastapi import APIRouter, Depends, status

from api.routes.auth import get_current_actor
from core.dependencies import MeetingManagerDep
from schemas.access_code import Actor
from schemas.meeting import (
    ConfirmRequest,
    CreateMeetingRequest,
    MeetingResponseInfo,
    MeetingView,
    RespondRequest,
)

router = APIRouter(prefix="/api/meetings", tags=["Meetings"])


@router.post(
    "",
    response_model=MeetingView,
    status_code=status.HTTP_201_CREATED,
    summary="Create a meeting poll",
)
def create_meeting(
    req: CreateMeetingRequest,
    meeting_manager: MeetingManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> MeetingView:
    return meeting_manager.create_meeting(
        actor,
        title=req.title,
        candidate_slots=req.slots,
        description=req.description,
        response_deadline=req.response_deadline,
    )


@router.get("", response_model=List[MeetingView], summary="List meeting polls")
def list_meetings(
    meeting_manager: MeetingManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> List[MeetingView]:
    return meeting_manager.list_meetings(actor)


@router.get("/{meeting_id}", response_model=MeetingView, summary="Get a meeting poll")
def get_meeting(
    meeting_id: str,
    meeting_manager: MeetingManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> MeetingView:
    return meeting_manager.get_meeting(actor, meeting_id)


@router.put(
    "/slots/{slot_id}/response",
    response_model=MeetingResponseInfo,
    summary="Answer a candidate slot",
)
def respond_to_slot(
    slot_id: str,
    req: RespondRequest,
    meeting_manager: MeetingManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> MeetingResponseInfo:
    return meeting_manager.respond_to_slot(actor, slot_id, req.status)


@router.post(
    "/{meeting_id}/confirm",
    response_model=MeetingView,
    summary="Confirm the meeting on one slot",
)
def confirm_slot(
    meeting_id: str,
    req: ConfirmRequest,
    meeting_manager: MeetingManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> MeetingView:
    return meeting_manager.confirm_slot(actor, meeting_id, req.slot_id)
