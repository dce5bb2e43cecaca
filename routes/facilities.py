from flask import Blueprint, request, jsonify

from models import db
from models.facility import Facility, FACILITY_TYPES

facilities_bp = Blueprint("facilities", __name__, url_prefix="/facilities")


def facility_to_json(f):
    return {
        "id": f.id,
        "name": f.name,
        "facility_type": f.facility_type,
        "description": f.description,
        "location": f.location,
        "price_per_hour": float(f.price_per_hour) if f.price_per_hour is not None else None,
        "is_available": f.is_available,
        "created_at": f.created_at.isoformat() if f.created_at else None,
    }


@facilities_bp.get("")
def list_facilities():
    facility_type = (request.args.get("type") or "").strip().lower()
    name_query = (request.args.get("name") or "").strip()

    q = Facility.query.filter(Facility.is_available.is_(True))
    if facility_type:
        if facility_type not in FACILITY_TYPES:
            return jsonify(error=f"type must be one of {', '.join(FACILITY_TYPES)}"), 400
        q = q.filter(Facility.facility_type == facility_type)
    if name_query:
        q = q.filter(Facility.name.ilike(f"%{name_query}%"))

    rows = q.order_by(Facility.facility_type.asc(), Facility.name.asc()).limit(200).all()
    return jsonify([facility_to_json(f) for f in rows]), 200


@facilities_bp.get("/<int:facility_id>")
def get_facility(facility_id: int):
    facility = db.session.get(Facility, facility_id)
    if not facility:
        return jsonify(error="Facility not found"), 404
    return jsonify(facility_to_json(facility)), 200
