from .access_code import AccessCodeModel
from .appointment import AppointmentModel
from .meeting import MeetingModel
from .meeting_slot import MeetingSlotModel
from .meeting_response import MeetingResponseModel

__all__ = [
    "AccessCodeModel",
    "AppointmentModel",
    "MeetingModel",
    "MeetingSlotModel",
    "MeetingResponseModel",
]
