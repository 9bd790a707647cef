from datetime import time, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    StoreUnavailableError,
    ValidationError,
)
from schemas.meeting import CandidateSlot, MeetingStatus, ResponseStatus
from utils.meeting_manager import MeetingManager


@pytest.fixture
def meetings(db):
    return MeetingManager(db)


@pytest.fixture
def candidates(future_day):
    return [
        CandidateSlot(date=future_day, start_time=time(17, 0), end_time=time(18, 0)),
        CandidateSlot(
            date=future_day + timedelta(days=1), start_time=time(17, 0), end_time=time(18, 0)
        ),
    ]


@pytest.fixture
def meeting(meetings, teacher, candidates):
    return meetings.create_meeting(teacher, "Conseil de cycle", candidates, "Salle 3")


class TestCreation:
    def test_create_meeting(self, meeting, teacher, future_day):
        assert meeting.status == MeetingStatus.PENDING
        assert meeting.creator_code_id == teacher.code_id
        assert meeting.creator_name == "M. Dupont"
        assert meeting.description == "Salle 3"
        assert meeting.is_creator is True
        assert meeting.confirmed_slot_id is None
        assert [s.date for s in meeting.slots] == [future_day, future_day + timedelta(days=1)]
        assert all(s.available_count == 0 and not s.can_confirm for s in meeting.slots)

    def test_incomplete_candidates_are_ignored(self, meetings, partner, future_day):
        created = meetings.create_meeting(
            partner,
            "Sortie scolaire",
            [
                CandidateSlot(date=future_day, start_time=time(9, 0), end_time=time(10, 0)),
                CandidateSlot(date=future_day, start_time=time(14, 0)),
                CandidateSlot(),
            ],
        )
        assert len(created.slots) == 1

    def test_blank_title_is_rejected(self, meetings, teacher, candidates):
        with pytest.raises(ValidationError):
            meetings.create_meeting(teacher, "   ", candidates)

    def test_no_complete_candidate_is_rejected(self, meetings, teacher, future_day):
        with pytest.raises(ValidationError):
            meetings.create_meeting(teacher, "Réunion", [CandidateSlot(date=future_day)])
        with pytest.raises(ValidationError):
            meetings.create_meeting(teacher, "Réunion", [])
        assert meetings.list_meetings(teacher) == []

    def test_candidate_ending_before_start_is_rejected(self, meetings, teacher, future_day):
        with pytest.raises(ValidationError):
            meetings.create_meeting(
                teacher,
                "Réunion",
                [CandidateSlot(date=future_day, start_time=time(18, 0), end_time=time(17, 0))],
            )

    def test_parents_cannot_create_polls(self, meetings, parent_a, candidates):
        with pytest.raises(PermissionDeniedError):
            meetings.create_meeting(parent_a, "Réunion", candidates)

    def test_failed_commit_writes_nothing(self, meetings, db, teacher, candidates, monkeypatch):
        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db, "commit", failing_commit)
        with pytest.raises(StoreUnavailableError):
            meetings.create_meeting(teacher, "Réunion", candidates)
        monkeypatch.undo()

        assert meetings.list_meetings(teacher) == []

    def test_list_newest_first(self, meetings, teacher, partner, candidates):
        first = meetings.create_meeting(teacher, "Premier", candidates)
        second = meetings.create_meeting(partner, "Second", candidates)
        listed = meetings.list_meetings(teacher)
        assert [m.id for m in listed] == [second.id, first.id]
        assert [m.is_creator for m in listed] == [False, True]

    def test_get_missing_meeting(self, meetings, teacher):
        with pytest.raises(NotFoundError):
            meetings.get_meeting(teacher, "missing")


class TestResponses:
    def test_answer_is_aggregated(self, meetings, meeting, teacher, other_teacher, partner):
        first, second = meeting.slots
        meetings.respond_to_slot(other_teacher, first.id, "available")
        meetings.respond_to_slot(partner, first.id, "available")
        meetings.respond_to_slot(partner, second.id, "unavailable")

        view = meetings.get_meeting(partner, meeting.id)
        first_view, second_view = view.slots
        assert first_view.available_count == 2
        assert second_view.available_count == 0
        assert first_view.my_response == ResponseStatus.AVAILABLE
        assert second_view.my_response == ResponseStatus.UNAVAILABLE
        assert not first_view.can_confirm

        creator_view = meetings.get_meeting(teacher, meeting.id)
        assert creator_view.slots[0].my_response is None
        assert creator_view.slots[0].can_confirm is True
        assert creator_view.slots[1].can_confirm is False

    def test_second_answer_replaces_first(self, meetings, meeting, other_teacher):
        slot_id = meeting.slots[0].id
        first = meetings.respond_to_slot(other_teacher, slot_id, "available")
        again = meetings.respond_to_slot(other_teacher, slot_id, "available")
        changed = meetings.respond_to_slot(other_teacher, slot_id, "unavailable")

        assert first.id == again.id == changed.id
        assert changed.status == ResponseStatus.UNAVAILABLE
        assert changed.responder_name == "Mme Martin"

        view = meetings.get_meeting(other_teacher, meeting.id)
        assert len(view.slots[0].responses) == 1
        assert view.slots[0].available_count == 0

    def test_unknown_status_is_rejected(self, meetings, meeting, other_teacher):
        with pytest.raises(ValidationError):
            meetings.respond_to_slot(other_teacher, meeting.slots[0].id, "maybe")

    def test_missing_slot(self, meetings, other_teacher):
        with pytest.raises(NotFoundError):
            meetings.respond_to_slot(other_teacher, "missing", "available")

    def test_parents_cannot_respond(self, meetings, meeting, parent_a):
        with pytest.raises(PermissionDeniedError):
            meetings.respond_to_slot(parent_a, meeting.slots[0].id, "available")

    def test_insert_losing_to_a_concurrent_first_answer_overwrites_it(
        self, meetings, meeting, other_teacher, monkeypatch
    ):
        slot_id = meeting.slots[0].id
        first = meetings.respond_to_slot(other_teacher, slot_id, "available")

        # The answer is not seen before inserting, so the insert hits the
        # unique constraint and falls back to updating the stored row
        find_response = meetings._find_response
        lookups = []

        def miss_first_lookup(*args):
            lookups.append(args)
            if len(lookups) == 1:
                return None
            return find_response(*args)

        monkeypatch.setattr(meetings, "_find_response", miss_first_lookup)
        stored = meetings.respond_to_slot(other_teacher, slot_id, "unavailable")
        monkeypatch.undo()

        assert stored.id == first.id
        assert stored.status == ResponseStatus.UNAVAILABLE
        view = meetings.get_meeting(other_teacher, meeting.id)
        assert len(view.slots[0].responses) == 1


class TestVisibility:
    def test_parents_cannot_read_polls(self, meetings, meeting, parent_a):
        with pytest.raises(PermissionDeniedError):
            meetings.list_meetings(parent_a)
        with pytest.raises(PermissionDeniedError):
            meetings.get_meeting(parent_a, meeting.id)

    def test_staff_and_admin_read_polls(self, meetings, meeting, partner, admin):
        assert [m.id for m in meetings.list_meetings(partner)] == [meeting.id]
        admin_view = meetings.get_meeting(admin, meeting.id)
        assert admin_view.is_creator is False
        assert not any(s.can_confirm for s in admin_view.slots)


class TestConfirmation:
    def test_confirm_slot(self, meetings, meeting, teacher, other_teacher):
        chosen = meeting.slots[1]
        meetings.respond_to_slot(other_teacher, chosen.id, "available")

        confirmed = meetings.confirm_slot(teacher, meeting.id, chosen.id)
        assert confirmed.status == MeetingStatus.CONFIRMED
        assert confirmed.confirmed_slot_id == chosen.id
        assert [s.is_confirmed for s in confirmed.slots] == [False, True]
        assert not any(s.can_confirm for s in confirmed.slots)

    def test_confirm_only_once(self, meetings, meeting, teacher, other_teacher):
        first, second = meeting.slots
        meetings.respond_to_slot(other_teacher, first.id, "available")
        meetings.respond_to_slot(other_teacher, second.id, "available")
        meetings.confirm_slot(teacher, meeting.id, first.id)

        with pytest.raises(InvalidStateError):
            meetings.confirm_slot(teacher, meeting.id, second.id)
        assert meetings.get_meeting(teacher, meeting.id).confirmed_slot_id == first.id

    def test_concurrent_confirmation_loses(
        self, meetings, meeting, teacher, other_teacher, session_factory
    ):
        slot_id = meeting.slots[0].id
        meetings.respond_to_slot(other_teacher, slot_id, "available")

        # Confirm from another session between the checks and the write
        original = meetings._get_meeting_model

        def get_then_confirm_elsewhere(meeting_id):
            model = original(meeting_id)
            if model.status == MeetingStatus.PENDING.value:
                other_session = session_factory()
                try:
                    MeetingManager(other_session).confirm_slot(teacher, meeting_id, slot_id)
                finally:
                    other_session.close()
            return model

        meetings._get_meeting_model = get_then_confirm_elsewhere
        with pytest.raises(ConflictError):
            meetings.confirm_slot(teacher, meeting.id, slot_id)

    def test_only_creator_confirms(self, meetings, meeting, other_teacher):
        slot_id = meeting.slots[0].id
        meetings.respond_to_slot(other_teacher, slot_id, "available")
        with pytest.raises(PermissionDeniedError):
            meetings.confirm_slot(other_teacher, meeting.id, slot_id)

    def test_slot_nobody_is_available_for(self, meetings, meeting, teacher, other_teacher):
        slot_id = meeting.slots[0].id
        with pytest.raises(InvalidStateError):
            meetings.confirm_slot(teacher, meeting.id, slot_id)
        meetings.respond_to_slot(other_teacher, slot_id, "unavailable")
        with pytest.raises(InvalidStateError):
            meetings.confirm_slot(teacher, meeting.id, slot_id)

    def test_slot_of_another_meeting(
        self, meetings, meeting, teacher, other_teacher, candidates
    ):
        other = meetings.create_meeting(teacher, "Autre", candidates)
        foreign_slot = other.slots[0].id
        meetings.respond_to_slot(other_teacher, foreign_slot, "available")
        with pytest.raises(NotFoundError):
            meetings.confirm_slot(teacher, meeting.id, foreign_slot)

    def test_answers_after_confirmation_are_kept(
        self, meetings, meeting, teacher, other_teacher, partner
    ):
        slot_id = meeting.slots[0].id
        meetings.respond_to_slot(other_teacher, slot_id, "available")
        meetings.confirm_slot(teacher, meeting.id, slot_id)

        meetings.respond_to_slot(partner, slot_id, "available")
        view = meetings.get_meeting(partner, meeting.id)
        assert view.status == MeetingStatus.CONFIRMED
        assert view.slots[0].available_count == 2
