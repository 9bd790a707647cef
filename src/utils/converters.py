"""Conversion from ORM models to API schemas."""

from typing import Optional

from models.access_code import AccessCodeModel
from models.appointment import AppointmentModel
from models.meeting import MeetingModel
from models.meeting_response import MeetingResponseModel
from models.meeting_slot import MeetingSlotModel
from schemas.access_code import AccessCodeInfo, Actor, Profile
from schemas.appointment import AppointmentSlot, SlotStatus
from schemas.meeting import (
    MeetingResponseInfo,
    MeetingSlotView,
    MeetingStatus,
    MeetingView,
    ResponseStatus,
)


def model_to_actor(model: AccessCodeModel) -> Actor:
    return Actor(
        code_id=model.id,
        code=model.code,
        profile=Profile(model.profile),
        display_name=model.display_name,
        class_name=model.class_name,
    )


def model_to_access_code(model: AccessCodeModel) -> AccessCodeInfo:
    return AccessCodeInfo(
        id=model.id,
        code=model.code,
        profile=Profile(model.profile),
        display_name=model.display_name,
        class_name=model.class_name,
        is_active=bool(model.is_active),
        created_at=model.created_at,
    )


def model_to_slot(model: AppointmentModel) -> AppointmentSlot:
    teacher = model.teacher
    parent = model.parent
    return AppointmentSlot(
        id=model.id,
        teacher_code_id=model.teacher_code_id,
        teacher_name=teacher.display_name if teacher else None,
        teacher_class_name=teacher.class_name if teacher else None,
        date=model.date,
        start_time=model.start_time,
        end_time=model.end_time,
        status=SlotStatus(model.status),
        parent_code_id=model.parent_code_id,
        parent_name=parent.display_name if parent else None,
        child_name=model.child_name,
        booked_at=model.booked_at,
    )


def model_to_response(model: MeetingResponseModel) -> MeetingResponseInfo:
    return MeetingResponseInfo(
        id=model.id,
        slot_id=model.slot_id,
        responder_code_id=model.responder_code_id,
        responder_name=model.responder.display_name if model.responder else None,
        status=ResponseStatus(model.status),
    )


def model_to_meeting_slot(
    model: MeetingSlotModel,
    meeting: MeetingModel,
    viewer_code_id: Optional[str] = None,
) -> MeetingSlotView:
    """Build a slot view with availability aggregated over its responses."""
    responses = [model_to_response(r) for r in model.responses]
    available_count = sum(
        1 for r in responses if r.status == ResponseStatus.AVAILABLE
    )
    my_response = next(
        (r.status for r in responses if r.responder_code_id == viewer_code_id),
        None,
    )
    is_pending = meeting.status == MeetingStatus.PENDING.value
    return MeetingSlotView(
        id=model.id,
        date=model.date,
        start_time=model.start_time,
        end_time=model.end_time,
        available_count=available_count,
        responses=responses,
        my_response=my_response,
        is_confirmed=meeting.confirmed_slot_id == model.id,
        can_confirm=(
            is_pending
            and meeting.creator_code_id == viewer_code_id
            and available_count > 0
        ),
    )


def model_to_meeting(
    model: MeetingModel, viewer_code_id: Optional[str] = None
) -> MeetingView:
    return MeetingView(
        id=model.id,
        title=model.title,
        description=model.description,
        creator_code_id=model.creator_code_id,
        creator_name=model.creator.display_name if model.creator else None,
        status=MeetingStatus(model.status),
        confirmed_slot_id=model.confirmed_slot_id,
        response_deadline=model.response_deadline,
        created_at=model.created_at,
        is_creator=model.creator_code_id == viewer_code_id,
        slots=[
            model_to_meeting_slot(slot, model, viewer_code_id) for slot in model.slots
        ],
    )
