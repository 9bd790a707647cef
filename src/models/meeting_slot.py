import uuid
from datetime import datetime

import pytz
from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, String, Time
from sqlalchemy.orm import relationship

from .base import Base


class MeetingSlotModel(Base):
    __tablename__ = "meeting_slots"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_meeting_slots_time_order"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    meeting_id = Column(
        String, ForeignKey("meetings.id", ondelete="CASCADE"), index=True, nullable=False
    )
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(pytz.utc)
    )

    meeting = relationship("MeetingModel", back_populates="slots")
    responses = relationship(
        "MeetingResponseModel",
        back_populates="slot",
        cascade="all, delete-orphan",
    )
