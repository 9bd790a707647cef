"""Meeting poll database model."""

import uuid
from datetime import datetime

import pytz
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from .base import Base


class MeetingModel(Base):
    __tablename__ = "meetings"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')",
            name="ck_meetings_status",
        ),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    creator_code_id = Column(
        String, ForeignKey("access_codes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    status = Column(String, nullable=False, default="pending")
    # Points at one of this meeting's own slots; checked by MeetingManager
    confirmed_slot_id = Column(String, nullable=True)
    response_deadline = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(pytz.utc)
    )

    creator = relationship("AccessCodeModel")
    slots = relationship(
        "MeetingSlotModel",
        back_populates="meeting",
        cascade="all, delete-orphan",
        order_by="[MeetingSlotModel.date, MeetingSlotModel.start_time]",
    )
