"""Appointment slot schema definitions."""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from config import DEFAULT_SLOT_DURATION_MINUTES


class SlotStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AppointmentSlot(BaseModel):
    """A bookable unit of a teacher's time, as shown to callers."""

    id: str
    teacher_code_id: str
    teacher_name: Optional[str] = None
    teacher_class_name: Optional[str] = None
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    status: SlotStatus
    parent_code_id: Optional[str] = None
    parent_name: Optional[str] = None
    child_name: Optional[str] = Field(
        default=None, description="Label given by the parent, e.g. the child's first name."
    )
    booked_at: Optional[dt.datetime] = None


class CreateSlotRequest(BaseModel):
    date: dt.date
    start_time: dt.time
    end_time: dt.time


class CreateSlotBatchRequest(BaseModel):
    date: dt.date
    start_time: dt.time = Field(description="Start of the range to split.")
    end_time: dt.time = Field(description="End of the range; a partial last slot is dropped.")
    duration_minutes: int = Field(
        default=DEFAULT_SLOT_DURATION_MINUTES, description="Length of each slot."
    )


class BookSlotRequest(BaseModel):
    child_name: Optional[str] = None
