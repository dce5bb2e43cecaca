from datetime import date
from typing import List, Optional, Set

from models import db
from models.booking import Booking, ACTIVE_STATUSES
from models.facility import Facility
from services.slot_catalog import Slot, all_slots


def get_bookable_facility(facility_id) -> Optional[Facility]:
    """Facility row if it exists and is switched on for booking, else None."""
    if facility_id is None:
        return None
    facility = db.session.get(Facility, facility_id)
    if not facility or not facility.is_available:
        return None
    return facility


def booked_slots(facility_id: int, day: date) -> Set[Slot]:
    rows = (
        db.session.query(Booking.start_time, Booking.end_time)
        .filter(
            Booking.facility_id == facility_id,
            Booking.booking_date == day,
            Booking.status.in_(ACTIVE_STATUSES),
        )
        .all()
    )
    return {Slot(r.start_time, r.end_time) for r in rows}


def available_slots(facility_id: int, day: date) -> List[Slot]:
    """Catalog slots for the facility's type minus those held by PENDING/CONFIRMED bookings.

    Unknown or disabled facilities have nothing to offer, so an empty list
    comes back instead of an error.
    """
    facility = get_bookable_facility(facility_id)
    if facility is None:
        return []

    taken = booked_slots(facility.id, day)
    return [s for s in all_slots(facility.facility_type) if s not in taken]
