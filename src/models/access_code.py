"""Access code database model.

This module defines the AccessCode database model using SQLAlchemy. An access
code is the only identity a holder has: logging in means presenting it.
"""

import uuid
from datetime import datetime

import pytz
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String
from .base import Base


class AccessCodeModel(Base):
    """Access code database model."""

    __tablename__ = "access_codes"
    __table_args__ = (
        CheckConstraint(
            "profile IN ('admin', 'teacher', 'parent', 'partner')",
            name="ck_access_codes_profile",
        ),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    code = Column(String, unique=True, index=True, nullable=False)  # upper-case
    profile = Column(String, nullable=False)  # 'admin', 'teacher', 'parent' or 'partner'
    display_name = Column(String, nullable=True)
    class_name = Column(String, nullable=True)  # e.g. "CM2"
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(pytz.utc)
    )
