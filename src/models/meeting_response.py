import uuid
from datetime import datetime

import pytz
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import Base


class MeetingResponseModel(Base):
    __tablename__ = "meeting_responses"
    __table_args__ = (
        UniqueConstraint(
            "slot_id",
            "responder_code_id",
            name="uq_meeting_responses_slot_responder",
        ),
        CheckConstraint(
            "status IN ('available', 'unavailable')",
            name="ck_meeting_responses_status",
        ),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    slot_id = Column(
        String, ForeignKey("meeting_slots.id", ondelete="CASCADE"), index=True, nullable=False
    )
    responder_code_id = Column(
        String, ForeignKey("access_codes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    status = Column(String, nullable=False)
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(pytz.utc)
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(pytz.utc),
        onupdate=lambda: datetime.now(pytz.utc),
    )

    slot = relationship("MeetingSlotModel", back_populates="responses")
    responder = relationship("AccessCodeModel")
