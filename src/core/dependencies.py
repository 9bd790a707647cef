"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes,
following Google Python Style Guide and FastAPI best practices.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from core.database import get_db
from utils import access_code_manager
from utils import booking_manager
from utils import meeting_manager


def get_access_code_manager(
    db: Session = Depends(get_db),
) -> access_code_manager.AccessCodeManager:
    """Get AccessCodeManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        AccessCodeManager instance.
    """
    return access_code_manager.AccessCodeManager(db)


def get_booking_manager(db: Session = Depends(get_db)) -> booking_manager.BookingManager:
    """Get BookingManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        BookingManager instance.
    """
    return booking_manager.BookingManager(db)


def get_meeting_manager(db: Session = Depends(get_db)) -> meeting_manager.MeetingManager:
    """Get MeetingManager instance with request-scoped DB session."""
    return meeting_manager.MeetingManager(db)


# Type aliases for dependency injection
AccessCodeManagerDep = Annotated[
    access_code_manager.AccessCodeManager, Depends(get_access_code_manager)
]
BookingManagerDep = Annotated[
    booking_manager.BookingManager, Depends(get_booking_manager)
]
MeetingManagerDep = Annotated[
    meeting_manager.MeetingManager, Depends(get_meeting_manager)
]
