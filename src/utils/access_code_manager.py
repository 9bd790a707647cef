"""Access code management utilities.

This module provides the access code directory: login by code, admin
management of codes, per-class teacher listing and dashboard statistics.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.database import store_errors
from core.exceptions import (
    DuplicateCodeError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from models.access_code import AccessCodeModel
from models.appointment import AppointmentModel
from models.meeting import MeetingModel
from schemas.access_code import AccessCodeInfo, Actor, DirectoryStats, Profile
from schemas.appointment import SlotStatus
from schemas.meeting import MeetingStatus
from utils.converters import model_to_access_code, model_to_actor

logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    """Access codes are compared trimmed and upper-cased."""
    return (code or "").strip().upper()


class AccessCodeManager:
    """Manages access code persistence and lookups using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize AccessCodeManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def _get_model(self, code_id: str) -> AccessCodeModel:
        model = (
            self.db.query(AccessCodeModel)
            .filter(AccessCodeModel.id == code_id)
            .first()
        )
        if not model:
            raise NotFoundError("Access code", code_id)
        return model

    def authenticate(self, code: str) -> Optional[Actor]:
        """Resolve an access code typed at login.

        Args:
            code: Code as typed, any case and surrounding whitespace.

        Returns:
            Actor for an active code, None otherwise.
        """
        normalized = normalize_code(code)
        if not normalized:
            return None
        with store_errors(self.db):
            model = (
                self.db.query(AccessCodeModel)
                .filter(
                    AccessCodeModel.code == normalized,
                    AccessCodeModel.is_active.is_(True),
                )
                .first()
            )
        if model is None:
            logger.info("Rejected login with unknown or inactive code")
            return None
        return model_to_actor(model)

    def get_actor(self, code_id: str) -> Optional[Actor]:
        """Get the Actor for an active code by record ID."""
        with store_errors(self.db):
            model = (
                self.db.query(AccessCodeModel)
                .filter(
                    AccessCodeModel.id == code_id,
                    AccessCodeModel.is_active.is_(True),
                )
                .first()
            )
        return model_to_actor(model) if model else None

    def create_code(
        self,
        code: str,
        profile: str,
        display_name: Optional[str] = None,
        class_name: Optional[str] = None,
    ) -> AccessCodeInfo:
        """Create a new access code.

        Args:
            code: The code; stored trimmed and upper-cased.
            profile: One of the Profile values.
            display_name: Optional display name.
            class_name: Optional class affiliation.

        Returns:
            Created AccessCodeInfo.

        Raises:
            ValidationError: If the code is blank or the profile is unknown.
            DuplicateCodeError: If the code already exists.
        """
        normalized = normalize_code(code)
        if not normalized:
            raise ValidationError("Access code cannot be empty.")
        try:
            profile_value = Profile(profile).value
        except ValueError:
            raise ValidationError(f"Invalid profile: {profile}")

        model = AccessCodeModel(
            code=normalized,
            profile=profile_value,
            display_name=(display_name or "").strip() or None,
            class_name=(class_name or "").strip() or None,
            is_active=True,
        )
        with store_errors(self.db):
            try:
                self.db.add(model)
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                raise DuplicateCodeError(normalized) from e
            self.db.refresh(model)

        logger.info("Created access code %s with profile %s", normalized, profile_value)
        return model_to_access_code(model)

    def list_codes(self) -> List[AccessCodeInfo]:
        with store_errors(self.db):
            models = (
                self.db.query(AccessCodeModel)
                .order_by(AccessCodeModel.profile, AccessCodeModel.display_name)
                .all()
            )
        return [model_to_access_code(m) for m in models]

    def set_active(self, code_id: str, is_active: bool) -> AccessCodeInfo:
        """Activate or deactivate a code without deleting it."""
        with store_errors(self.db):
            model = self._get_model(code_id)
            model.is_active = is_active
            self.db.commit()
            self.db.refresh(model)
        logger.info("Set access code %s active=%s", model.code, is_active)
        return model_to_access_code(model)

    def delete_code(self, code_id: str) -> None:
        """Delete an access code.

        Slots booked with the code are returned to available in the same
        transaction, so no booked slot is left without a holder. Completed
        slots it held keep their status but lose the holder, label and
        booked-at together.

        Args:
            code_id: ID of the code to delete.

        Raises:
            NotFoundError: If the code does not exist.
            PermissionDeniedError: If the code is an admin code.
        """
        with store_errors(self.db):
            model = self._get_model(code_id)
            if model.profile == Profile.ADMIN.value:
                raise PermissionDeniedError("The admin code cannot be deleted.")
            code = model.code

            released = self.db.execute(
                update(AppointmentModel)
                .where(
                    AppointmentModel.parent_code_id == code_id,
                    AppointmentModel.status == SlotStatus.BOOKED.value,
                )
                .values(
                    status=SlotStatus.AVAILABLE.value,
                    parent_code_id=None,
                    child_name=None,
                    booked_at=None,
                )
                .execution_options(synchronize_session=False)
            ).rowcount
            self.db.execute(
                update(AppointmentModel)
                .where(
                    AppointmentModel.parent_code_id == code_id,
                    AppointmentModel.status == SlotStatus.COMPLETED.value,
                )
                .values(parent_code_id=None, child_name=None, booked_at=None)
                .execution_options(synchronize_session=False)
            )
            self.db.delete(model)
            self.db.commit()
        logger.info("Deleted access code %s, released %s booking(s)", code, released)

    def list_teachers_for_class(self, class_name: Optional[str]) -> List[AccessCodeInfo]:
        """List active teachers of a class, by display name."""
        with store_errors(self.db):
            models = (
                self.db.query(AccessCodeModel)
                .filter(
                    AccessCodeModel.profile == Profile.TEACHER.value,
                    AccessCodeModel.class_name == class_name,
                    AccessCodeModel.is_active.is_(True),
                )
                .order_by(AccessCodeModel.display_name)
                .all()
            )
        return [model_to_access_code(m) for m in models]

    def get_stats(self) -> DirectoryStats:
        with store_errors(self.db):
            profile_counts = dict(
                self.db.query(AccessCodeModel.profile, func.count(AccessCodeModel.id))
                .filter(AccessCodeModel.is_active.is_(True))
                .group_by(AccessCodeModel.profile)
                .all()
            )
            slot_counts = dict(
                self.db.query(AppointmentModel.status, func.count(AppointmentModel.id))
                .group_by(AppointmentModel.status)
                .all()
            )
            meetings_pending = (
                self.db.query(func.count(MeetingModel.id))
                .filter(MeetingModel.status == MeetingStatus.PENDING.value)
                .scalar()
            )
        return DirectoryStats(
            teachers=profile_counts.get(Profile.TEACHER.value, 0),
            partners=profile_counts.get(Profile.PARTNER.value, 0),
            parents=profile_counts.get(Profile.PARENT.value, 0),
            appointments_booked=slot_counts.get(SlotStatus.BOOKED.value, 0),
            appointments_available=slot_counts.get(SlotStatus.AVAILABLE.value, 0),
            meetings_pending=meetings_pending or 0,
        )
