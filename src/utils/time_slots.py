"""Time helpers for slot generation and "today" in the school's timezone."""

from datetime import date, datetime, time, timedelta
from typing import List, Tuple

import pytz

from config import SCHOOL_TIMEZONE
from core.exceptions import ValidationError


def validate_time_range(start: time, end: time) -> None:
    """Raise ValidationError unless end is strictly after start."""
    if end <= start:
        raise ValidationError("End time must be after start time.")


def generate_time_slots(
    range_start: time, range_end: time, duration_minutes: int
) -> List[Tuple[time, time]]:
    """Split a time range into contiguous slots of equal length.

    Slots are generated back to back from range_start. A trailing interval
    shorter than duration_minutes is discarded, never shortened.

    Args:
        range_start: Start of the range.
        range_end: End of the range, must be after range_start.
        duration_minutes: Length of each slot, must be positive.

    Returns:
        List of (start, end) pairs in chronological order.

    Raises:
        ValidationError: If the duration or the range is invalid.
    """
    if duration_minutes is None or duration_minutes <= 0:
        raise ValidationError("Slot duration must be a positive number of minutes.")
    validate_time_range(range_start, range_end)

    # Anchor both bounds on one day so seconds and microseconds are kept
    current = datetime.combine(date.min, range_start)
    end = datetime.combine(date.min, range_end)
    step = timedelta(minutes=duration_minutes)

    slots = []
    while current + step <= end:
        slots.append((current.time(), (current + step).time()))
        current += step
    return slots


def today() -> date:
    """Current date in the school's timezone."""
    return datetime.now(pytz.timezone(SCHOOL_TIMEZONE)).date()
