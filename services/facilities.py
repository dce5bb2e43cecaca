from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking
from models.facility import Facility, FACILITY_TYPES
from services.errors import FacilityConflictError, FacilityUnavailableError, ValidationError
from utils.audit import log_event


def _clean(data: dict, partial: bool = False) -> dict:
    cleaned = {}
    errors = {}

    if "name" in data or not partial:
        name = (data.get("name") or "").strip()
        if not name:
            errors["name"] = "Name is required"
        cleaned["name"] = name[:120]

    if "facility_type" in data or not partial:
        facility_type = (data.get("facility_type") or "").strip().lower()
        if facility_type not in FACILITY_TYPES:
            errors["facility_type"] = f"Must be one of {', '.join(FACILITY_TYPES)}"
        cleaned["facility_type"] = facility_type

    if "price_per_hour" in data or not partial:
        try:
            price = Decimal(str(data.get("price_per_hour")))
            if not price.is_finite() or price < 0:
                raise InvalidOperation
            cleaned["price_per_hour"] = price
        except (InvalidOperation, ValueError):
            errors["price_per_hour"] = "Must be a number, zero or more"

    if "is_available" in data:
        if not isinstance(data["is_available"], bool):
            errors["is_available"] = "Must be true or false"
        cleaned["is_available"] = data["is_available"]

    for key in ("description", "location"):
        if key in data:
            cleaned[key] = (data.get(key) or "").strip() or None

    if errors:
        raise ValidationError("Invalid facility", fields=errors)
    return cleaned


def _has_bookings(facility_id: int) -> bool:
    return Booking.query.filter_by(facility_id=facility_id).first() is not None


def create_facility(data: dict) -> Facility:
    facility = Facility(**_clean(data))
    db.session.add(facility)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise FacilityConflictError("A facility with that name already exists") from None

    log_event("FACILITY_CREATE", actor="ADMIN", entity="facility", entity_id=facility.id)
    return facility


def update_facility(facility_id: int, data: dict) -> Facility:
    facility = db.session.get(Facility, facility_id)
    if not facility:
        raise FacilityUnavailableError("Facility not found")

    cleaned = _clean(data, partial=True)
    if cleaned.get("facility_type", facility.facility_type) != facility.facility_type and _has_bookings(facility.id):
        raise FacilityConflictError("Facility has bookings; its type cannot change")

    for key, value in cleaned.items():
        setattr(facility, key, value)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise FacilityConflictError("A facility with that name already exists") from None

    log_event("FACILITY_UPDATE", actor="ADMIN", entity="facility", entity_id=facility.id, metadata={k: str(v) for k, v in cleaned.items()})
    return facility


def delete_facility(facility_id: int) -> None:
    facility = db.session.get(Facility, facility_id)
    if not facility:
        raise FacilityUnavailableError("Facility not found")
    if _has_bookings(facility.id):
        raise FacilityConflictError("Facility has bookings; mark it unavailable instead")

    db.session.delete(facility)
    db.session.commit()
    log_event("FACILITY_DELETE", actor="ADMIN", entity="facility", entity_id=facility_id)
