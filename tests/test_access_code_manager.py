from datetime import time

import pytest

from core.exceptions import (
    DuplicateCodeError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from schemas.access_code import BADGE_FALLBACKS, HOME_PATHS, Actor, Profile
from schemas.appointment import SlotStatus
from utils.access_code_manager import AccessCodeManager, normalize_code
from utils.booking_manager import BookingManager


def test_every_profile_has_a_home_path_and_badge():
    assert set(HOME_PATHS) == set(Profile)
    assert set(BADGE_FALLBACKS) == set(Profile)


def test_badges_per_profile():
    base = dict(code_id="x", code="X", display_name="Mme Petit", class_name="CE1")
    assert Actor(profile=Profile.ADMIN, **base).badge == "Admin"
    assert Actor(profile=Profile.TEACHER, **base).badge == "Mme Petit"
    assert Actor(profile=Profile.PARENT, **base).badge == "CE1"
    assert Actor(code_id="x", code="X", profile=Profile.PARTNER).badge == "Partner"


def test_normalize_code():
    assert normalize_code("  dupont ") == "DUPONT"
    assert normalize_code(None) == ""


def test_create_code_is_stored_upper_case(db):
    manager = AccessCodeManager(db)
    info = manager.create_code(" petit ", "teacher", "Mme Petit", "CE1")
    assert info.code == "PETIT"
    assert info.profile == Profile.TEACHER
    assert info.is_active is True


def test_duplicate_code_is_rejected_case_insensitively(db):
    manager = AccessCodeManager(db)
    manager.create_code("CP", "parent", "Parents CP", "CP")
    with pytest.raises(DuplicateCodeError):
        manager.create_code("cp", "parent")
    assert len(manager.list_codes()) == 1


def test_create_code_validation(db):
    manager = AccessCodeManager(db)
    with pytest.raises(ValidationError):
        manager.create_code("   ", "teacher")
    with pytest.raises(ValidationError):
        manager.create_code("ROOT", "superuser")


def test_authenticate_is_case_insensitive(db, teacher):
    actor = AccessCodeManager(db).authenticate("  dupont")
    assert actor == teacher
    assert actor.home_path == "/teacher"


def test_inactive_code_cannot_authenticate(db, teacher):
    manager = AccessCodeManager(db)
    manager.set_active(teacher.code_id, False)
    assert manager.authenticate("DUPONT") is None
    assert manager.get_actor(teacher.code_id) is None

    manager.set_active(teacher.code_id, True)
    assert manager.get_actor(teacher.code_id) == teacher


def test_unknown_code_cannot_authenticate(db):
    assert AccessCodeManager(db).authenticate("NOPE") is None
    assert AccessCodeManager(db).authenticate("") is None


def test_admin_code_cannot_be_deleted(db, admin):
    with pytest.raises(PermissionDeniedError):
        AccessCodeManager(db).delete_code(admin.code_id)


def test_delete_missing_code(db):
    with pytest.raises(NotFoundError):
        AccessCodeManager(db).delete_code("missing")


def test_deleting_a_parent_code_releases_its_bookings(db, teacher, parent_a, future_day):
    booking = BookingManager(db)
    slot = booking.create_slot(teacher, future_day, time(10, 0), time(10, 15))
    booking.book_slot(parent_a, slot.id, "Léa")

    AccessCodeManager(db).delete_code(parent_a.code_id)

    released = booking.get_slot(slot.id)
    assert released.status == SlotStatus.AVAILABLE
    assert released.parent_code_id is None
    assert released.child_name is None
    assert released.booked_at is None


def test_deleting_a_parent_code_clears_its_completed_appointments(
    db, teacher, parent_a, future_day
):
    booking = BookingManager(db)
    slot = booking.create_slot(teacher, future_day, time(11, 0), time(11, 15))
    booking.book_slot(parent_a, slot.id, "Léa")
    booking.complete_slot(teacher, slot.id)

    AccessCodeManager(db).delete_code(parent_a.code_id)

    completed = booking.get_slot(slot.id)
    assert completed.status == SlotStatus.COMPLETED
    assert completed.parent_code_id is None
    assert completed.child_name is None
    assert completed.booked_at is None


def test_deleting_a_teacher_code_removes_its_slots(db, teacher, future_day):
    booking = BookingManager(db)
    slot = booking.create_slot(teacher, future_day, time(10, 0), time(10, 15))

    AccessCodeManager(db).delete_code(teacher.code_id)

    with pytest.raises(NotFoundError):
        booking.get_slot(slot.id)


def test_list_teachers_for_class(db, teacher, other_teacher):
    manager = AccessCodeManager(db)
    manager.create_code("LEROY", "teacher", "M. Leroy", "CM2")
    inactive = manager.create_code("ANCIEN", "teacher", "M. Ancien", "CM2")
    manager.set_active(inactive.id, False)

    names = [t.display_name for t in manager.list_teachers_for_class("CM2")]
    assert names == ["M. Dupont", "M. Leroy"]


def test_stats(db, teacher, partner, parent_a, parent_b, future_day):
    booking = BookingManager(db)
    slots = booking.create_slots(teacher, future_day, time(9, 0), time(10, 0), 20)
    booking.book_slot(parent_a, slots[0].id)

    stats = AccessCodeManager(db).get_stats()
    assert stats.teachers == 1
    assert stats.partners == 1
    assert stats.parents == 2
    assert stats.appointments_booked == 1
    assert stats.appointments_available == 2
    assert stats.meetings_pending == 0
