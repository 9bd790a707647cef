"""Appointment slot database model."""

import uuid
from datetime import datetime

import pytz
from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    String,
    Time,
)
from sqlalchemy.orm import relationship

from .base import Base


class AppointmentModel(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_appointments_time_order"),
        CheckConstraint(
            "status IN ('available', 'booked', 'completed', 'cancelled')",
            name="ck_appointments_status",
        ),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    teacher_code_id = Column(
        String, ForeignKey("access_codes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    date = Column(Date, index=True, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String, index=True, nullable=False, default="available")

    # Booking fields, set together by a booking and cleared together by a release
    parent_code_id = Column(
        String, ForeignKey("access_codes.id", ondelete="SET NULL"), index=True, nullable=True
    )
    child_name = Column(String, nullable=True)
    booked_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(pytz.utc)
    )

    teacher = relationship("AccessCodeModel", foreign_keys=[teacher_code_id])
    parent = relationship("AccessCodeModel", foreign_keys=[parent_code_id])
