"""
Daily slot catalog.

Slots are stored and compared as 24-hour "HH:MM" pairs and shown to
customers as "9:00 AM - 10:00 AM". The catalog is configuration
(``SLOT_CATALOG``), one entry per facility type, and never depends on the
facility rows themselves.
"""
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from flask import current_app

from services.errors import InvalidSlotError, ValidationError

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(AM|PM)?$", re.IGNORECASE)


@dataclass(frozen=True)
class Slot:
    start: str
    end: str

    @property
    def minutes(self) -> int:
        return _to_minutes(self.end) - _to_minutes(self.start)

    @property
    def label(self) -> str:
        return format_label(self)


def _to_minutes(hhmm: str) -> int:
    hour, minute = hhmm.split(":")
    return int(hour) * 60 + int(minute)


def _from_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def to_24h(value: str) -> str:
    """'1:00 PM' -> '13:00'. A 24-hour value is normalised and passed through."""
    if not isinstance(value, str):
        raise ValidationError(f"Invalid time: {value!r}")
    text = re.sub(r"\s+", "", value)
    m = _TIME_RE.match(text)
    if not m:
        raise ValidationError(f"Invalid time: {value!r}")

    hour, minute, meridiem = int(m.group(1)), int(m.group(2)), m.group(3)
    if minute > 59:
        raise ValidationError(f"Invalid time: {value!r}")

    if meridiem:
        if not 1 <= hour <= 12:
            raise ValidationError(f"Invalid time: {value!r}")
        meridiem = meridiem.upper()
        if meridiem == "PM" and hour != 12:
            hour += 12
        if meridiem == "AM" and hour == 12:
            hour = 0
    elif hour > 23:
        raise ValidationError(f"Invalid time: {value!r}")

    return f"{hour:02d}:{minute:02d}"


def to_12h(hhmm: str) -> str:
    """'13:00' -> '1:00 PM', '00:00' -> '12:00 AM'."""
    hour, minute = (int(p) for p in to_24h(hhmm).split(":"))
    meridiem = "PM" if hour >= 12 else "AM"
    hour = hour % 12 or 12
    return f"{hour}:{minute:02d} {meridiem}"


def format_label(slot: Slot) -> str:
    return f"{to_12h(slot.start)} - {to_12h(slot.end)}"


def parse_label(label: str) -> Slot:
    """Parse a display label back into its 24-hour bounds.

    Whitespace is ignored, so "9:00 AM - 10:00 AM", "9:00AM-10:00AM" and
    "09:00-10:00" all give Slot("09:00", "10:00").
    """
    if not isinstance(label, str):
        raise ValidationError(f"Invalid slot label: {label!r}")
    parts = re.sub(r"\s+", "", label).split("-")
    if len(parts) != 2 or not all(parts):
        raise ValidationError(f"Invalid slot label: {label!r}")
    return Slot(to_24h(parts[0]), to_24h(parts[1]))


def build_catalog(open_at: str, close_at: str, minutes: int) -> Tuple[Slot, ...]:
    start = _to_minutes(to_24h(open_at))
    stop = _to_minutes(to_24h(close_at))
    if minutes <= 0 or start >= stop:
        raise ValueError(f"Bad slot catalog entry: {open_at}-{close_at} every {minutes} min")

    slots = []
    while start + minutes <= stop:
        slots.append(Slot(_from_minutes(start), _from_minutes(start + minutes)))
        start += minutes
    return tuple(slots)


def all_slots(facility_type: str, catalog: Optional[dict] = None) -> Tuple[Slot, ...]:
    catalog = catalog if catalog is not None else current_app.config["SLOT_CATALOG"]
    entry = catalog.get(facility_type)
    if not entry:
        raise InvalidSlotError(f"No slot catalog for facility type {facility_type!r}")
    return build_catalog(entry["open"], entry["close"], int(entry["minutes"]))


def is_catalog_slot(facility_type: str, start: str, end: str) -> bool:
    return Slot(start, end) in all_slots(facility_type)


def require_catalog_slot(facility_type: str, start: str, end: str) -> Slot:
    try:
        slot = Slot(to_24h(start), to_24h(end))
    except ValidationError:
        raise InvalidSlotError(f"{start}-{end} is not a bookable slot") from None
    if slot not in all_slots(facility_type):
        raise InvalidSlotError(f"{slot.start}-{slot.end} is not a bookable slot")
    return slot
