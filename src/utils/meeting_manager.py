"""Meeting poll engine.

Teachers and partners propose candidate slots, respond to each with their
availability, and the meeting's creator confirms one slot. A meeting moves
from pending to confirmed exactly once.
"""

import logging
from datetime import datetime
from typing import List, Optional

import pytz
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload

from core.database import store_errors
from core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from models.meeting import MeetingModel
from models.meeting_response import MeetingResponseModel
from models.meeting_slot import MeetingSlotModel
from schemas.access_code import Actor, Profile
from schemas.meeting import (
    CandidateSlot,
    MeetingResponseInfo,
    MeetingStatus,
    MeetingView,
    ResponseStatus,
)
from utils.converters import model_to_meeting, model_to_response
from utils.time_slots import validate_time_range

logger = logging.getLogger(__name__)

# Profiles that take part in meeting polls
POLL_PROFILES = (Profile.TEACHER, Profile.PARTNER)
# Profiles that may read meeting polls
POLL_VIEWER_PROFILES = POLL_PROFILES + (Profile.ADMIN,)


class MeetingManager:
    """Manages meeting polls, their responses and their confirmation."""

    def __init__(self, db: Session):
        """Initialize MeetingManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def _meeting_query(self):
        # Meeting -> slots -> responses (with responder), in one round of loads
        return self.db.query(MeetingModel).options(
            joinedload(MeetingModel.creator),
            selectinload(MeetingModel.slots)
            .selectinload(MeetingSlotModel.responses)
            .joinedload(MeetingResponseModel.responder),
        )

    def _get_meeting_model(self, meeting_id: str) -> MeetingModel:
        model = (
            self._meeting_query()
            .filter(MeetingModel.id == meeting_id)
            .populate_existing()
            .first()
        )
        if model is None:
            raise NotFoundError("Meeting", meeting_id)
        return model

    @staticmethod
    def _require_poll_profile(actor: Actor) -> None:
        if actor.profile not in POLL_PROFILES:
            raise PermissionDeniedError(
                f"Profile '{actor.profile.value}' cannot take part in meeting polls."
            )

    @staticmethod
    def _require_poll_viewer(actor: Actor) -> None:
        if actor.profile not in POLL_VIEWER_PROFILES:
            raise PermissionDeniedError(
                f"Profile '{actor.profile.value}' cannot view meeting polls."
            )

    def create_meeting(
        self,
        actor: Actor,
        title: str,
        candidate_slots: List[CandidateSlot],
        description: Optional[str] = None,
        response_deadline: Optional[datetime] = None,
    ) -> MeetingView:
        """Create a pending meeting poll with its candidate slots.

        Candidates missing a date, start or end are ignored. The meeting and
        its slots are written in a single transaction.

        Args:
            actor: The creating teacher or partner.
            title: Meeting title, must not be blank.
            candidate_slots: Proposed times.
            description: Optional free text.
            response_deadline: Optional date by which to respond.

        Returns:
            The created meeting.

        Raises:
            PermissionDeniedError: If the actor cannot create polls.
            ValidationError: If the title is blank, no complete candidate
                remains, or a candidate ends before it starts.
        """
        self._require_poll_profile(actor)
        title = (title or "").strip()
        if not title:
            raise ValidationError("Meeting title cannot be empty.")

        complete = [
            c
            for c in candidate_slots or []
            if c.date is not None and c.start_time is not None and c.end_time is not None
        ]
        if not complete:
            raise ValidationError("Add at least one candidate slot.")
        for candidate in complete:
            validate_time_range(candidate.start_time, candidate.end_time)

        meeting = MeetingModel(
            title=title,
            description=(description or "").strip() or None,
            creator_code_id=actor.code_id,
            status=MeetingStatus.PENDING.value,
            response_deadline=response_deadline,
        )
        meeting.slots = [
            MeetingSlotModel(date=c.date, start_time=c.start_time, end_time=c.end_time)
            for c in complete
        ]
        with store_errors(self.db):
            try:
                self.db.add(meeting)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
            created = self._get_meeting_model(meeting.id)

        logger.info(
            "%s created meeting %s with %s slot(s)", actor.code, created.id, len(complete)
        )
        return model_to_meeting(created, actor.code_id)

    def list_meetings(self, actor: Actor) -> List[MeetingView]:
        """List all meetings, newest first, aggregated for the viewer."""
        self._require_poll_viewer(actor)
        with store_errors(self.db):
            models = self._meeting_query().order_by(MeetingModel.created_at.desc()).all()
        return [model_to_meeting(m, actor.code_id) for m in models]

    def get_meeting(self, actor: Actor, meeting_id: str) -> MeetingView:
        self._require_poll_viewer(actor)
        with store_errors(self.db):
            model = self._get_meeting_model(meeting_id)
        return model_to_meeting(model, actor.code_id)

    def respond_to_slot(
        self, actor: Actor, slot_id: str, status: str
    ) -> MeetingResponseInfo:
        """Record the actor's availability for a candidate slot.

        A second answer for the same slot replaces the first. Answers given
        after the meeting was confirmed are stored but change nothing.

        Args:
            actor: The responding teacher or partner.
            slot_id: ID of the meeting slot.
            status: 'available' or 'unavailable'.

        Returns:
            The stored response.

        Raises:
            PermissionDeniedError: If the actor cannot respond to polls.
            ValidationError: If the status is unknown.
            NotFoundError: If the slot does not exist.
        """
        self._require_poll_profile(actor)
        try:
            status_value = ResponseStatus(status).value
        except ValueError:
            raise ValidationError(f"Invalid response status: {status}")

        with store_errors(self.db):
            slot = (
                self.db.query(MeetingSlotModel)
                .filter(MeetingSlotModel.id == slot_id)
                .first()
            )
            if slot is None:
                raise NotFoundError("Meeting slot", slot_id)

            existing = self._find_response(slot_id, actor.code_id)
            if existing is not None:
                existing.status = status_value
                self.db.commit()
            else:
                try:
                    self.db.add(
                        MeetingResponseModel(
                            slot_id=slot_id,
                            responder_code_id=actor.code_id,
                            status=status_value,
                        )
                    )
                    self.db.commit()
                except IntegrityError:
                    # A concurrent first answer got in; overwrite it
                    self.db.rollback()
                    logger.info(
                        "Concurrent response for slot %s by %s, overwriting",
                        slot_id, actor.code,
                    )
                    self.db.execute(
                        update(MeetingResponseModel)
                        .where(
                            MeetingResponseModel.slot_id == slot_id,
                            MeetingResponseModel.responder_code_id == actor.code_id,
                        )
                        .values(status=status_value, updated_at=datetime.now(pytz.utc))
                        .execution_options(synchronize_session=False)
                    )
                    self.db.commit()
            stored = self._find_response(slot_id, actor.code_id)

        logger.info("%s answered %s for meeting slot %s", actor.code, status_value, slot_id)
        return model_to_response(stored)

    def _find_response(
        self, slot_id: str, responder_code_id: str
    ) -> Optional[MeetingResponseModel]:
        return (
            self.db.query(MeetingResponseModel)
            .options(joinedload(MeetingResponseModel.responder))
            .filter(
                MeetingResponseModel.slot_id == slot_id,
                MeetingResponseModel.responder_code_id == responder_code_id,
            )
            .populate_existing()
            .first()
        )

    def confirm_slot(self, actor: Actor, meeting_id: str, slot_id: str) -> MeetingView:
        """Confirm one candidate slot as the meeting's time.

        Only the creator may confirm, only while the meeting is pending, and
        only a slot of this meeting that at least one respondent is available
        for. The status change is conditional on the meeting still being
        pending, so a meeting is confirmed at most once.

        Args:
            actor: The meeting's creator.
            meeting_id: ID of the meeting.
            slot_id: ID of the chosen slot.

        Returns:
            The confirmed meeting.

        Raises:
            NotFoundError: If the meeting or slot does not exist.
            PermissionDeniedError: If the actor is not the creator.
            InvalidStateError: If the meeting is not pending or nobody is
                available for the slot.
            ConflictError: If another confirmation landed first.
        """
        with store_errors(self.db):
            meeting = self._get_meeting_model(meeting_id)
            if meeting.creator_code_id != actor.code_id:
                raise PermissionDeniedError("Only the meeting creator can confirm a slot.")
            if meeting.status != MeetingStatus.PENDING.value:
                raise InvalidStateError(
                    f"Only pending meetings can be confirmed (meeting is {meeting.status})."
                )
            slot = next((s for s in meeting.slots if s.id == slot_id), None)
            if slot is None:
                raise NotFoundError("Meeting slot", slot_id)
            if not any(r.status == ResponseStatus.AVAILABLE.value for r in slot.responses):
                raise InvalidStateError("Nobody is available for this slot yet.")

            result = self.db.execute(
                update(MeetingModel)
                .where(
                    MeetingModel.id == meeting_id,
                    MeetingModel.status == MeetingStatus.PENDING.value,
                )
                .values(status=MeetingStatus.CONFIRMED.value, confirmed_slot_id=slot_id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                logger.warning("Meeting %s was confirmed concurrently", meeting_id)
                raise ConflictError("This meeting was confirmed in the meantime.")
            self.db.commit()
            confirmed = self._get_meeting_model(meeting_id)

        logger.info("Meeting %s confirmed on slot %s", meeting_id, slot_id)
        return model_to_meeting(confirmed, actor.code_id)
