from flask import Blueprint, request, jsonify

from services import bookings as booking_service
from services.availability import available_slots
from services.errors import ValidationError
from services.slot_catalog import parse_label
from utils.validation import parse_date

booking_bp = Blueprint("booking", __name__, url_prefix="/bookings")


def _money(value):
    return float(value) if value is not None else None


def slot_to_json(slot):
    return {"start_time": slot.start, "end_time": slot.end, "label": slot.label}


def booking_to_json(b):
    return {
        "id": b.id,
        "facility_id": b.facility_id,
        "facility_type": b.facility_type,
        "facility_name": b.facility_name,
        "booking_date": b.booking_date.isoformat(),
        "start_time": b.start_time,
        "end_time": b.end_time,
        "price": _money(b.price),
        "customer_name": b.customer_name,
        "customer_email": b.customer_email,
        "customer_phone": b.customer_phone,
        "status": b.status,
        "payment_ref": b.payment_ref,
        "refund_amount": _money(b.refund_amount),
        "cancel_reason": b.cancel_reason,
        "created_at": b.created_at.isoformat() if b.created_at else None,
        "cancelled_at": b.cancelled_at.isoformat() if b.cancelled_at else None,
    }


def facility_id_arg(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("facility_id must be an integer", fields={"facility_id": "Required"}) from None


def slot_bounds(data: dict):
    """(start, end) from either a display label ("slot") or explicit 24h fields."""
    if data.get("slot"):
        slot = parse_label(data["slot"])
        return slot.start, slot.end
    start_time = data.get("start_time")
    end_time = data.get("end_time")
    if not start_time or not end_time:
        raise ValidationError("slot or start_time/end_time required", fields={"slot": "Select a time slot"})
    return start_time, end_time


# ---------- CUSTOMERS: view free slots ----------
@booking_bp.get("/available-slots")
def list_available_slots():
    facility_id = facility_id_arg(request.args.get("facility_id"))
    day = parse_date(request.args.get("date"))
    return jsonify([slot_to_json(s) for s in available_slots(facility_id, day)]), 200


# ---------- CUSTOMERS: book slot (DOUBLE-BOOKING SAFE) ----------
@booking_bp.post("")
def create_booking():
    data = request.get_json(silent=True) or {}
    facility_id = facility_id_arg(data.get("facility_id"))
    start_time, end_time = slot_bounds(data)

    booking = booking_service.create_booking(
        facility_id,
        data.get("date") or data.get("booking_date"),
        start_time,
        end_time,
        customer={
            "name": data.get("customer_name"),
            "email": data.get("customer_email"),
            "phone": data.get("customer_phone"),
        },
    )
    return jsonify(booking_to_json(booking)), 201


# ---------- CUSTOMERS: view my bookings ----------
@booking_bp.get("")
def my_bookings():
    email = (request.args.get("email") or "").strip()
    if not email:
        return jsonify(error="email required"), 400
    rows = booking_service.list_bookings(customer_email=email, status=request.args.get("status"))
    return jsonify([booking_to_json(b) for b in rows]), 200


# ---------- CUSTOMERS: cancel booking (policy window) ----------
@booking_bp.post("/<int:booking_id>/cancel")
def cancel_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip()
    if not email:
        return jsonify(error="email required"), 400

    booking = booking_service.cancel_booking(booking_id, reason=data.get("reason"), customer_email=email)
    return jsonify(booking_to_json(booking)), 200
