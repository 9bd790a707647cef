"""Appointment slot routes.

Teachers publish slots, parents book and cancel them. Every mutating route
returns the authoritative state from the booking engine; a 409 with code
"conflict" means the slot was taken first and the list should be reloaded.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.routes.auth import get_current_actor, require_admin
from config import RECENT_APPOINTMENTS_LIMIT
from core.dependencies import AccessCodeManagerDep, BookingManagerDep
from schemas.access_code import AccessCodeInfo, Actor, Profile
from schemas.appointment import (
    AppointmentSlot,
    BookSlotRequest,
    CreateSlotBatchRequest,
    CreateSlotRequest,
)

router = APIRouter(prefix="/api/appointments", tags=["Appointments"])

# Upper bound on the admin overview page size
MAX_RECENT_APPOINTMENTS = 500


@router.post(
    "/slots",
    response_model=AppointmentSlot,
    status_code=status.HTTP_201_CREATED,
    summary="Create one slot",
)
def create_slot(
    req: CreateSlotRequest,
    booking_manager: BookingManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> AppointmentSlot:
    return booking_manager.create_slot(actor, req.date, req.start_time, req.end_time)


@router.post(
    "/slots/batch",
    response_model=List[AppointmentSlot],
    status_code=status.HTTP_201_CREATED,
    summary="Split a time range into slots",
)
def create_slots(
    req: CreateSlotBatchRequest,
    booking_manager: BookingManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> List[AppointmentSlot]:
    return booking_manager.create_slots(
        actor, req.date, req.start_time, req.end_time, req.duration_minutes
    )


@router.get("/slots", response_model=List[AppointmentSlot], summary="List my slots")
def list_my_slots(
    booking_manager: BookingManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> List[AppointmentSlot]:
    if actor.profile != Profile.TEACHER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only teachers have appointment slots.",
        )
    return booking_manager.list_teacher_slots(actor.code_id)


@router.delete("/slots/{slot_id}", summary="Delete an available slot")
def delete_slot(
    slot_id: str,
    booking_manager: BookingManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> dict:
    booking_manager.delete_slot(actor, slot_id)
    return {"message": "Slot deleted"}


@router.post("/slots/{slot_id}/book", response_model=AppointmentSlot, summary="Book a slot")
def book_slot(
    slot_id: str,
    booking_manager: BookingManagerDep,
    req: Optional[BookSlotRequest] = None,
    actor: Actor = Depends(get_current_actor),
) -> AppointmentSlot:
    child_name = req.child_name if req else None
    return booking_manager.book_slot(actor, slot_id, child_name)


@router.post(
    "/slots/{slot_id}/release", response_model=AppointmentSlot, summary="Cancel a booking"
)
def release_booking(
    slot_id: str,
    booking_manager: BookingManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> AppointmentSlot:
    return booking_manager.release_booking(actor, slot_id)


@router.post(
    "/slots/{slot_id}/complete",
    response_model=AppointmentSlot,
    summary="Mark an appointment as held",
)
def complete_slot(
    slot_id: str,
    booking_manager: BookingManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> AppointmentSlot:
    return booking_manager.complete_slot(actor, slot_id)


@router.get("/bookings", response_model=List[AppointmentSlot], summary="List my bookings")
def list_my_bookings(
    booking_manager: BookingManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> List[AppointmentSlot]:
    return booking_manager.list_parent_bookings(actor.code_id)


@router.get(
    "/teachers",
    response_model=List[AccessCodeInfo],
    summary="List the teachers of my class",
)
def list_class_teachers(
    access_code_manager: AccessCodeManagerDep,
    actor: Actor = Depends(get_current_actor),
) -> List[AccessCodeInfo]:
    return access_code_manager.list_teachers_for_class(actor.class_name)


@router.get(
    "/teachers/{teacher_code_id}/available",
    response_model=List[AppointmentSlot],
    summary="List a teacher's available slots",
)
def list_available_slots(
    teacher_code_id: str,
    booking_manager: BookingManagerDep,
    on_date: Optional[date] = Query(default=None, alias="date"),
    actor: Actor = Depends(get_current_actor),
) -> List[AppointmentSlot]:
    return booking_manager.list_available_slots(teacher_code_id, on_date=on_date)


@router.get(
    "/recent",
    response_model=List[AppointmentSlot],
    summary="Latest appointments (admin)",
)
def list_recent_slots(
    booking_manager: BookingManagerDep,
    limit: int = Query(
        default=RECENT_APPOINTMENTS_LIMIT, ge=1, le=MAX_RECENT_APPOINTMENTS
    ),
    admin: Actor = Depends(require_admin),
) -> List[AppointmentSlot]:
    return booking_manager.list_recent_slots(limit=limit)
