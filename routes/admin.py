from flask import Blueprint, jsonify, request

from routes.booking import booking_to_json, facility_id_arg
from routes.facilities import facility_to_json
from security.admin_token import require_admin
from services import bookings as booking_service
from services import facilities as facility_service
from utils.validation import parse_date

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# ---------- ADMIN: manage facilities ----------
@admin_bp.post("/facilities")
@require_admin
def create_facility():
    data = request.get_json(silent=True) or {}
    facility = facility_service.create_facility(data)
    return jsonify(facility_to_json(facility)), 201


@admin_bp.patch("/facilities/<int:facility_id>")
@require_admin
def update_facility(facility_id: int):
    data = request.get_json(silent=True) or {}
    facility = facility_service.update_facility(facility_id, data)
    return jsonify(facility_to_json(facility)), 200


@admin_bp.delete("/facilities/<int:facility_id>")
@require_admin
def delete_facility(facility_id: int):
    facility_service.delete_facility(facility_id)
    return jsonify(message="Deleted"), 200


# ---------- ADMIN: list bookings ----------
@admin_bp.get("/bookings")
@require_admin
def list_all_bookings():
    facility_id = request.args.get("facility_id")
    date_str = request.args.get("date")

    rows = booking_service.list_bookings(
        status=request.args.get("status"),
        facility_id=facility_id_arg(facility_id) if facility_id else None,
        day=parse_date(date_str) if date_str else None,
        customer_email=request.args.get("email"),
    )
    return jsonify([booking_to_json(b) for b in rows]), 200


@admin_bp.get("/bookings/<int:booking_id>")
@require_admin
def get_booking(booking_id: int):
    return jsonify(booking_to_json(booking_service.get_booking(booking_id))), 200


# ---------- ADMIN: override (no conflict check) ----------
@admin_bp.put("/bookings/<int:booking_id>")
@require_admin
def update_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    booking = booking_service.update_booking(booking_id, data)
    return jsonify(booking_to_json(booking)), 200


@admin_bp.delete("/bookings/<int:booking_id>")
@require_admin
def delete_booking(booking_id: int):
    booking_service.delete_booking(booking_id)
    return jsonify(message="Deleted"), 200


# ---------- ADMIN: lifecycle ----------
@admin_bp.post("/bookings/<int:booking_id>/mark-paid")
@require_admin
def mark_paid(booking_id: int):
    data = request.get_json(silent=True) or {}
    payment_ref = (data.get("payment_ref") or "").strip() or f"OFFLINE-{booking_id}"
    booking = booking_service.confirm_booking(booking_id, payment_ref=payment_ref, actor="ADMIN")
    return jsonify(booking_to_json(booking)), 200


@admin_bp.post("/bookings/<int:booking_id>/cancel")
@require_admin
def admin_cancel_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    reason = (data.get("reason") or "").strip() or "Admin cancellation"
    booking = booking_service.cancel_booking(booking_id, reason=reason, actor="ADMIN")
    return jsonify(booking_to_json(booking)), 200


@admin_bp.post("/bookings/<int:booking_id>/refund")
@require_admin
def refund_booking(booking_id: int):
    data = request.get_json(silent=True) or {}
    booking = booking_service.refund_booking(booking_id, amount=data.get("amount"))
    return jsonify(booking_to_json(booking)), 200


@admin_bp.post("/bookings/complete-elapsed")
@require_admin
def complete_elapsed():
    count = booking_service.complete_elapsed_bookings()
    return jsonify(completed=count), 200
