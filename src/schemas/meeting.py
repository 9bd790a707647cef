"""Meeting poll schema definitions.

The views here carry the per-slot aggregation the poll screen needs: how many
respondents are available, what the viewer answered, and whether the slot can
be confirmed by the viewer.
"""

import datetime as dt
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class MeetingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class ResponseStatus(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class CandidateSlot(BaseModel):
    """A proposed time; incomplete entries are ignored on creation."""

    date: Optional[dt.date] = None
    start_time: Optional[dt.time] = None
    end_time: Optional[dt.time] = None


class CreateMeetingRequest(BaseModel):
    title: str = ""
    description: Optional[str] = None
    response_deadline: Optional[dt.datetime] = None
    slots: List[CandidateSlot] = Field(default_factory=list)


class RespondRequest(BaseModel):
    status: str = Field(description="'available' or 'unavailable'.")


class ConfirmRequest(BaseModel):
    slot_id: str


class MeetingResponseInfo(BaseModel):
    id: str
    slot_id: str
    responder_code_id: str
    responder_name: Optional[str] = None
    status: ResponseStatus


class MeetingSlotView(BaseModel):
    id: str
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    available_count: int = 0
    responses: List[MeetingResponseInfo] = Field(default_factory=list)
    my_response: Optional[ResponseStatus] = Field(
        default=None, description="The viewer's own answer for this slot."
    )
    is_confirmed: bool = False
    can_confirm: bool = False


class MeetingView(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    creator_code_id: str
    creator_name: Optional[str] = None
    status: MeetingStatus
    confirmed_slot_id: Optional[str] = None
    response_deadline: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None
    is_creator: bool = False
    slots: List[MeetingSlotView] = Field(default_factory=list)
