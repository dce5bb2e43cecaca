"""
Booking commands.

The customer path (``create_booking``) is the only place that enforces
the no-double-booking rule. It does so with the ``slot_hold`` column:
a booking that occupies its slot carries "<facility>|<date>|<start>|<end>"
there, and the UNIQUE constraint on that column makes the insert itself
the availability check. Whoever commits second gets an IntegrityError,
reported as ``ConflictError``.

Admin edits (``update_booking``/``delete_booking``) skip both the conflict
check and the status rules so support staff can settle disputes.
"""
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import List

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import (
    Booking, STATUSES, ACTIVE_STATUSES,
    PENDING, CONFIRMED, COMPLETED, CANCELLED, FAILED, REFUNDED,
)
from services.availability import get_bookable_facility, booked_slots
from services.errors import (
    BookingNotFoundError, ConflictError, FacilityUnavailableError,
    InvalidTransitionError, ValidationError,
)
from services.slot_catalog import Slot, parse_label, require_catalog_slot
from utils.audit import log_event
from utils.validation import normalize_email, parse_date, validate_customer

TRANSITIONS = {
    PENDING: {CONFIRMED, CANCELLED, FAILED},
    CONFIRMED: {COMPLETED, CANCELLED, FAILED},
    FAILED: {REFUNDED},
    COMPLETED: set(),
    CANCELLED: set(),
    REFUNDED: set(),
}

_CENT = Decimal("0.01")


def assert_transition(current: str, target: str) -> None:
    if target not in TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(f"Booking cannot move from {current} to {target}")


def _set_status(booking: Booking, status: str) -> None:
    booking.status = status
    if status not in ACTIVE_STATUSES:
        booking.slot_hold = None


def _wall_clock(booking_date: date, hhmm: str) -> datetime:
    hour, minute = (int(p) for p in hhmm.split(":"))
    return datetime.combine(booking_date, time(hour, minute))


def _money(value, field: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", fields={field: "Must be a number"}) from None
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field} must be zero or more", fields={field: "Must be zero or more"})
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def get_booking(booking_id: int) -> Booking:
    booking = db.session.get(Booking, booking_id) if booking_id is not None else None
    if not booking:
        raise BookingNotFoundError("Booking not found")
    return booking


def list_bookings(status=None, facility_id=None, day=None, customer_email=None, limit=None) -> List[Booking]:
    q = Booking.query
    if status:
        q = q.filter(Booking.status == status.strip().upper())
    if facility_id:
        q = q.filter(Booking.facility_id == facility_id)
    if day:
        q = q.filter(Booking.booking_date == day)
    if customer_email:
        q = q.filter(Booking.customer_email == normalize_email(customer_email))

    limit = limit or current_app.config.get("BOOKINGS_PAGE_LIMIT", 200)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).limit(limit).all()


# ---------- customer path ----------
def create_booking(facility_id, day, start_time, end_time, customer: dict, price=None) -> Booking:
    """Create a PENDING booking or raise.

    ``customer`` needs ``name``, ``email`` and ``phone``. Raises
    ValidationError, FacilityUnavailableError, InvalidSlotError or
    ConflictError; nothing is written unless a booking is returned.
    """
    info = validate_customer(customer.get("name"), customer.get("email"), customer.get("phone"))
    day = parse_date(day)

    facility = get_bookable_facility(facility_id)
    if facility is None:
        raise FacilityUnavailableError("Facility not found or not available for booking")

    slot = require_catalog_slot(facility.facility_type, start_time, end_time)

    if current_app.config.get("BOOKING_REJECT_STARTED_SLOTS", True):
        if _wall_clock(day, slot.start) <= datetime.now():
            raise ValidationError("Cannot book past/started slots", fields={"start_time": "Slot has already started"})

    if price is None:
        amount = (Decimal(facility.price_per_hour) * slot.minutes / 60).quantize(_CENT, rounding=ROUND_HALF_UP)
    else:
        amount = _money(price, "price")

    # Admin overrides can leave a slot occupied without a hold; those still count as taken.
    if slot in booked_slots(facility.id, day):
        _report_conflict(facility.id, day, slot, info.email)

    booking = Booking(
        facility_id=facility.id,
        facility_type=facility.facility_type,
        facility_name=facility.name,
        booking_date=day,
        start_time=slot.start,
        end_time=slot.end,
        price=amount,
        customer_name=info.name,
        customer_email=info.email,
        customer_phone=info.phone,
        status=PENDING,
    )
    booking.slot_hold = booking.hold_key
    db.session.add(booking)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        # uq_booking_slot_hold triggers here when a concurrent request won
        _report_conflict(facility.id, day, slot, info.email)

    current_app.logger.info(
        "booking %s created for facility %s on %s %s-%s",
        booking.id, facility.id, day.isoformat(), slot.start, slot.end,
    )
    log_event(
        "BOOKING_CREATE", actor="CUSTOMER", entity="booking", entity_id=booking.id,
        metadata={"facility_id": facility.id, "date": day.isoformat(), "slot": f"{slot.start}-{slot.end}"},
    )
    return booking


def _report_conflict(facility_id: int, day: date, slot: Slot, email: str):
    current_app.logger.info(
        "slot %s-%s on %s for facility %s already taken", slot.start, slot.end, day.isoformat(), facility_id,
    )
    log_event(
        "BOOKING_FAIL_CONFLICT", actor="CUSTOMER", entity="facility", entity_id=facility_id,
        metadata={"date": day.isoformat(), "slot": f"{slot.start}-{slot.end}", "email": email},
    )
    raise ConflictError("That slot has just been booked by someone else. Please pick another slot.")


def cancel_booking(booking_id, reason=None, customer_email=None, actor="CUSTOMER", now=None) -> Booking:
    """Cancel a PENDING/CONFIRMED booking.

    Customers must pass the email the booking was made with and may only
    cancel before ``CANCEL_CUTOFF_HOURS`` ahead of the slot start.
    """
    booking = get_booking(booking_id)
    if customer_email is not None and normalize_email(customer_email) != booking.customer_email:
        raise BookingNotFoundError("Booking not found")

    assert_transition(booking.status, CANCELLED)

    if actor == "CUSTOMER":
        now = now or datetime.now()
        cutoff_hours = current_app.config.get("CANCEL_CUTOFF_HOURS", 0)
        start = _wall_clock(booking.booking_date, booking.start_time)
        if start - now <= timedelta(hours=cutoff_hours):
            if cutoff_hours:
                raise InvalidTransitionError(f"Cancellation not allowed within {cutoff_hours} hours of start")
            raise InvalidTransitionError("Cancellation not allowed after the slot has started")

    _set_status(booking, CANCELLED)
    booking.cancelled_at = datetime.utcnow()
    booking.cancel_reason = (reason or "").strip()[:255] or None
    db.session.commit()

    log_event("BOOKING_CANCEL", actor=actor, entity="booking", entity_id=booking.id, metadata={"reason": booking.cancel_reason})
    return booking


# ---------- payment callbacks ----------
def confirm_booking(booking_id, payment_ref=None, actor="PAYMENT") -> Booking:
    """PENDING -> CONFIRMED. Confirming an already CONFIRMED booking changes nothing."""
    booking = get_booking(booking_id)
    if booking.status == CONFIRMED:
        return booking

    assert_transition(booking.status, CONFIRMED)
    _set_status(booking, CONFIRMED)
    if payment_ref:
        booking.payment_ref = str(payment_ref)[:255]
    db.session.commit()

    log_event("BOOKING_CONFIRM", actor=actor, entity="booking", entity_id=booking.id, metadata={"payment_ref": booking.payment_ref})
    return booking


def fail_booking(booking_id, reason=None, actor="PAYMENT") -> Booking:
    """Payment failed: PENDING/CONFIRMED -> FAILED and the slot is released."""
    booking = get_booking(booking_id)
    if booking.status == FAILED:
        return booking

    assert_transition(booking.status, FAILED)
    _set_status(booking, FAILED)
    if reason:
        booking.notes = ((booking.notes + "\n") if booking.notes else "") + f"Payment failed: {reason}"
    db.session.commit()

    log_event("BOOKING_PAYMENT_FAILED", actor=actor, entity="booking", entity_id=booking.id, metadata={"reason": reason})
    return booking


def refund_booking(booking_id, amount=None, actor="ADMIN") -> Booking:
    booking = get_booking(booking_id)
    assert_transition(booking.status, REFUNDED)

    refund = Decimal(booking.price) if amount is None else _money(amount, "amount")
    if refund > Decimal(booking.price):
        raise ValidationError("Refund cannot exceed the booking price", fields={"amount": "Exceeds booking price"})

    _set_status(booking, REFUNDED)
    booking.refund_amount = refund
    db.session.commit()

    log_event("BOOKING_REFUND", actor=actor, entity="booking", entity_id=booking.id, metadata={"amount": str(refund)})
    return booking


def complete_elapsed_bookings(now=None) -> int:
    """Marks every CONFIRMED booking whose slot has ended as COMPLETED."""
    now = now or datetime.now()
    rows = (
        Booking.query
        .filter(Booking.status == CONFIRMED, Booking.booking_date <= now.date())
        .all()
    )
    done = [b for b in rows if _wall_clock(b.booking_date, b.end_time) <= now]
    for b in done:
        _set_status(b, COMPLETED)
    db.session.commit()

    if done:
        log_event("BOOKING_COMPLETE", actor="SYSTEM", entity="booking", metadata={"ids": [b.id for b in done]})
    return len(done)


# ---------- admin override ----------
_ADMIN_FIELDS = {
    "customer_name", "customer_email", "customer_phone",
    "booking_date", "date", "start_time", "end_time", "slot",
    "price", "status", "notes", "payment_ref",
}


def _clean_admin_fields(booking: Booking, fields: dict) -> dict:
    unknown = set(fields) - _ADMIN_FIELDS
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

    info = validate_customer(
        fields.get("customer_name", booking.customer_name),
        fields.get("customer_email", booking.customer_email),
        fields.get("customer_phone", booking.customer_phone),
    )
    cleaned = {"customer_name": info.name, "customer_email": info.email, "customer_phone": info.phone}

    day = fields.get("booking_date", fields.get("date"))
    cleaned["booking_date"] = parse_date(day, "booking_date") if day is not None else booking.booking_date

    if fields.get("slot"):
        slot = parse_label(fields["slot"])
        start, end = slot.start, slot.end
    else:
        start = fields.get("start_time", booking.start_time)
        end = fields.get("end_time", booking.end_time)
    slot = require_catalog_slot(booking.facility_type, start, end)
    cleaned["start_time"], cleaned["end_time"] = slot.start, slot.end

    if "price" in fields:
        cleaned["price"] = _money(fields["price"], "price")

    if "status" in fields:
        status = fields["status"]
        status = status.strip().upper() if isinstance(status, str) else None
        if status not in STATUSES:
            raise ValidationError(f"Unknown status {fields['status']!r}", fields={"status": "Unknown status"})
        cleaned["status"] = status

    for key in ("notes", "payment_ref"):
        if key in fields:
            cleaned[key] = fields[key]
    return cleaned


def _apply_admin_fields(booking: Booking, cleaned: dict, take_hold: bool) -> None:
    previous_status = booking.status
    for key, value in cleaned.items():
        setattr(booking, key, value)

    if booking.status == CANCELLED and previous_status != CANCELLED:
        booking.cancelled_at = datetime.utcnow()

    booking.slot_hold = None
    if take_hold and booking.status in ACTIVE_STATUSES:
        key = booking.hold_key
        holder = Booking.query.filter(Booking.slot_hold == key, Booking.id != booking.id).first()
        if holder is None:
            booking.slot_hold = key


def update_booking(booking_id, fields: dict) -> Booking:
    """Admin edit. No conflict check and no status rules.

    The booking keeps the slot hold when its (new) slot is free; if another
    booking already holds it, the edit is still saved, just without a hold,
    which leaves the slot double-booked on purpose.
    """
    booking = get_booking(booking_id)
    cleaned = _clean_admin_fields(booking, fields or {})

    with db.session.no_autoflush:
        _apply_admin_fields(booking, cleaned, take_hold=True)
    try:
        db.session.commit()
    except IntegrityError:
        # lost a race for the hold against a customer booking
        db.session.rollback()
        booking = get_booking(booking_id)
        _apply_admin_fields(booking, cleaned, take_hold=False)
        db.session.commit()

    if booking.status in ACTIVE_STATUSES and booking.slot_hold is None:
        current_app.logger.warning(
            "admin update left booking %s without a slot hold (slot already taken)", booking.id,
        )

    log_event(
        "ADMIN_BOOKING_UPDATE", actor="ADMIN", entity="booking", entity_id=booking.id,
        metadata={k: str(v) for k, v in cleaned.items()},
    )
    return booking


def delete_booking(booking_id) -> None:
    booking = get_booking(booking_id)
    db.session.delete(booking)
    db.session.commit()
    log_event("ADMIN_BOOKING_DELETE", actor="ADMIN", entity="booking", entity_id=booking_id)
