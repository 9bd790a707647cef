"""Appointment slot booking engine.

This module owns the appointment slot lifecycle:

    available -> booked -> available   (release)
    available -> booked -> completed
    available -> cancelled             (deletion)

Every transition is a conditional write guarded on the slot's current status,
so concurrent sessions never double-book a slot. No in-process locking is
involved; the database decides which write wins.
"""

import logging
from datetime import date, datetime, time
from typing import List, Optional

import pytz
from sqlalchemy import delete, update
from sqlalchemy.orm import Session, joinedload

from config import RECENT_APPOINTMENTS_LIMIT
from core.database import store_errors
from core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from models.appointment import AppointmentModel
from schemas.access_code import Actor, Profile
from schemas.appointment import AppointmentSlot, SlotStatus
from utils.converters import model_to_slot
from utils.time_slots import generate_time_slots, today, validate_time_range

logger = logging.getLogger(__name__)


class BookingManager:
    """Manages appointment slots and their bookings."""

    def __init__(self, db: Session):
        """Initialize BookingManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    # --- helpers ---

    def _find(self, slot_id: str) -> Optional[AppointmentModel]:
        return (
            self.db.query(AppointmentModel)
            .options(
                joinedload(AppointmentModel.teacher),
                joinedload(AppointmentModel.parent),
            )
            .filter(AppointmentModel.id == slot_id)
            .populate_existing()
            .first()
        )

    def _get(self, slot_id: str) -> AppointmentModel:
        model = self._find(slot_id)
        if model is None:
            raise NotFoundError("Appointment slot", slot_id)
        return model

    @staticmethod
    def _require_profile(actor: Actor, *profiles: Profile) -> None:
        if actor.profile not in profiles:
            raise PermissionDeniedError(
                f"Profile '{actor.profile.value}' cannot perform this action."
            )

    @staticmethod
    def _require_owner(actor: Actor, model: AppointmentModel) -> None:
        if actor.profile == Profile.ADMIN:
            return
        if actor.profile != Profile.TEACHER or model.teacher_code_id != actor.code_id:
            raise PermissionDeniedError("Only the slot's teacher can do this.")

    def _insert_slots(self, actor: Actor, slot_date: date, intervals) -> List[AppointmentSlot]:
        models = [
            AppointmentModel(
                teacher_code_id=actor.code_id,
                date=slot_date,
                start_time=start,
                end_time=end,
                status=SlotStatus.AVAILABLE.value,
            )
            for start, end in intervals
        ]
        # One transaction: either every slot is created or none is
        with store_errors(self.db):
            try:
                self.db.add_all(models)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
            created = [self._get(m.id) for m in models]
        return [model_to_slot(m) for m in created]

    # --- creation and deletion ---

    def create_slot(
        self, actor: Actor, slot_date: date, start_time: time, end_time: time
    ) -> AppointmentSlot:
        """Create a single available slot for the acting teacher.

        Raises:
            PermissionDeniedError: If the actor is not a teacher.
            ValidationError: If end_time is not after start_time.
        """
        self._require_profile(actor, Profile.TEACHER)
        validate_time_range(start_time, end_time)
        created = self._insert_slots(actor, slot_date, [(start_time, end_time)])
        logger.info(
            "Teacher %s created slot %s on %s %s-%s",
            actor.code, created[0].id, slot_date, start_time, end_time,
        )
        return created[0]

    def create_slots(
        self,
        actor: Actor,
        slot_date: date,
        range_start: time,
        range_end: time,
        duration_minutes: int,
    ) -> List[AppointmentSlot]:
        """Split a time range into available slots for the acting teacher.

        Slots already existing for the same teacher are not checked for
        overlap; overlapping slots are accepted as they are.

        Args:
            actor: The acting teacher.
            slot_date: Day of the slots.
            range_start: Start of the range.
            range_end: End of the range. A partial trailing slot is dropped.
            duration_minutes: Length of each slot.

        Returns:
            The created slots, in chronological order.

        Raises:
            PermissionDeniedError: If the actor is not a teacher.
            ValidationError: If the duration or range is invalid.
        """
        self._require_profile(actor, Profile.TEACHER)
        intervals = generate_time_slots(range_start, range_end, duration_minutes)
        if not intervals:
            return []
        created = self._insert_slots(actor, slot_date, intervals)
        logger.info(
            "Teacher %s created %s slot(s) on %s between %s and %s",
            actor.code, len(created), slot_date, range_start, range_end,
        )
        return created

    def delete_slot(self, actor: Actor, slot_id: str) -> None:
        """Delete a slot that nobody has booked.

        Raises:
            NotFoundError: If the slot does not exist.
            PermissionDeniedError: If the actor does not own the slot.
            InvalidStateError: If the slot is not available.
        """
        with store_errors(self.db):
            model = self._get(slot_id)
            self._require_owner(actor, model)
            result = self.db.execute(
                delete(AppointmentModel)
                .where(
                    AppointmentModel.id == slot_id,
                    AppointmentModel.status == SlotStatus.AVAILABLE.value,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                current = self._get(slot_id)
                raise InvalidStateError(
                    f"Only available slots can be deleted (slot is {current.status})."
                )
            self.db.commit()
        logger.info("Deleted slot %s", slot_id)

    # --- booking ---

    def book_slot(
        self, actor: Actor, slot_id: str, child_name: Optional[str] = None
    ) -> AppointmentSlot:
        """Book an available slot for the acting parent.

        The write only applies while the slot is still available, so of any
        number of concurrent calls on the same slot exactly one succeeds.

        Args:
            actor: The acting parent.
            slot_id: ID of the slot to book.
            child_name: Optional label shown to the teacher.

        Returns:
            The booked slot.

        Raises:
            PermissionDeniedError: If the actor is not a parent.
            NotFoundError: If the slot does not exist.
            ConflictError: If the slot is no longer available. The error
                carries the slot as it is now.
        """
        self._require_profile(actor, Profile.PARENT)
        label = (child_name or "").strip() or None

        with store_errors(self.db):
            result = self.db.execute(
                update(AppointmentModel)
                .where(
                    AppointmentModel.id == slot_id,
                    AppointmentModel.status == SlotStatus.AVAILABLE.value,
                )
                .values(
                    status=SlotStatus.BOOKED.value,
                    parent_code_id=actor.code_id,
                    child_name=label,
                    booked_at=datetime.now(pytz.utc),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                current = self._get(slot_id)
                logger.info(
                    "Parent %s lost slot %s (status %s)", actor.code, slot_id, current.status
                )
                raise ConflictError(
                    "This slot is no longer available.", current=model_to_slot(current)
                )
            self.db.commit()
            booked = self._get(slot_id)

        logger.info("Parent %s booked slot %s", actor.code, slot_id)
        return model_to_slot(booked)

    def release_booking(self, actor: Actor, slot_id: str) -> AppointmentSlot:
        """Cancel a booking and make the slot available again.

        Allowed for the booking parent, the slot's teacher and admins.

        Raises:
            NotFoundError: If the slot does not exist.
            PermissionDeniedError: If the actor may not release this booking.
            InvalidStateError: If the slot is not booked.
            ConflictError: If the booking changed while releasing it.
        """
        with store_errors(self.db):
            model = self._get(slot_id)
            if model.status != SlotStatus.BOOKED.value:
                raise InvalidStateError(
                    f"Only booked slots can be released (slot is {model.status})."
                )
            if actor.profile == Profile.PARENT:
                if model.parent_code_id != actor.code_id:
                    raise PermissionDeniedError("Parents can only cancel their own bookings.")
            else:
                self._require_owner(actor, model)

            holder = model.parent_code_id
            result = self.db.execute(
                update(AppointmentModel)
                .where(
                    AppointmentModel.id == slot_id,
                    AppointmentModel.status == SlotStatus.BOOKED.value,
                    AppointmentModel.parent_code_id == holder,
                )
                .values(
                    status=SlotStatus.AVAILABLE.value,
                    parent_code_id=None,
                    child_name=None,
                    booked_at=None,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                current = self._get(slot_id)
                raise ConflictError(
                    "The booking changed before it could be released.",
                    current=model_to_slot(current),
                )
            self.db.commit()
            released = self._get(slot_id)

        logger.info("%s %s released slot %s", actor.profile.value, actor.code, slot_id)
        return model_to_slot(released)

    def complete_slot(self, actor: Actor, slot_id: str) -> AppointmentSlot:
        """Mark a booked appointment as held.

        Raises:
            NotFoundError: If the slot does not exist.
            PermissionDeniedError: If the actor does not own the slot.
            InvalidStateError: If the slot is not booked.
        """
        with store_errors(self.db):
            model = self._get(slot_id)
            self._require_owner(actor, model)
            result = self.db.execute(
                update(AppointmentModel)
                .where(
                    AppointmentModel.id == slot_id,
                    AppointmentModel.status == SlotStatus.BOOKED.value,
                )
                .values(status=SlotStatus.COMPLETED.value)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                current = self._get(slot_id)
                raise InvalidStateError(
                    f"Only booked slots can be completed (slot is {current.status})."
                )
            self.db.commit()
            completed = self._get(slot_id)

        logger.info("Slot %s marked completed", slot_id)
        return model_to_slot(completed)

    # --- queries ---

    def get_slot(self, slot_id: str) -> AppointmentSlot:
        with store_errors(self.db):
            return model_to_slot(self._get(slot_id))

    def list_teacher_slots(
        self, teacher_code_id: str, from_date: Optional[date] = None
    ) -> List[AppointmentSlot]:
        """List a teacher's slots from today on, by date then start time."""
        from_date = from_date or today()
        with store_errors(self.db):
            models = (
                self.db.query(AppointmentModel)
                .options(joinedload(AppointmentModel.parent))
                .filter(
                    AppointmentModel.teacher_code_id == teacher_code_id,
                    AppointmentModel.date >= from_date,
                )
                .order_by(AppointmentModel.date, AppointmentModel.start_time)
                .all()
            )
        return [model_to_slot(m) for m in models]

    def list_parent_bookings(
        self, parent_code_id: str, from_date: Optional[date] = None
    ) -> List[AppointmentSlot]:
        """List a parent's upcoming booked appointments."""
        from_date = from_date or today()
        with store_errors(self.db):
            models = (
                self.db.query(AppointmentModel)
                .options(joinedload(AppointmentModel.teacher))
                .filter(
                    AppointmentModel.parent_code_id == parent_code_id,
                    AppointmentModel.status.in_([SlotStatus.BOOKED.value]),
                    AppointmentModel.date >= from_date,
                )
                .order_by(AppointmentModel.date, AppointmentModel.start_time)
                .all()
            )
        return [model_to_slot(m) for m in models]

    def list_available_slots(
        self,
        teacher_code_id: str,
        on_date: Optional[date] = None,
        from_date: Optional[date] = None,
    ) -> List[AppointmentSlot]:
        """List a teacher's upcoming available slots, optionally for one day."""
        from_date = from_date or today()
        with store_errors(self.db):
            query = (
                self.db.query(AppointmentModel)
                .options(joinedload(AppointmentModel.teacher))
                .filter(
                    AppointmentModel.teacher_code_id == teacher_code_id,
                    AppointmentModel.status == SlotStatus.AVAILABLE.value,
                    AppointmentModel.date >= from_date,
                )
            )
            if on_date is not None:
                query = query.filter(AppointmentModel.date == on_date)
            models = query.order_by(
                AppointmentModel.date, AppointmentModel.start_time
            ).all()
        return [model_to_slot(m) for m in models]

    def list_recent_slots(self, limit: int = RECENT_APPOINTMENTS_LIMIT) -> List[AppointmentSlot]:
        """Latest slots across all teachers, for the admin overview."""
        with store_errors(self.db):
            models = (
                self.db.query(AppointmentModel)
                .options(
                    joinedload(AppointmentModel.teacher),
                    joinedload(AppointmentModel.parent),
                )
                .order_by(AppointmentModel.date.desc(), AppointmentModel.start_time.desc())
                .limit(limit)
                .all()
            )
        return [model_to_slot(m) for m in models]
