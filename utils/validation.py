import re
from dataclasses import dataclass
from datetime import date, datetime

from services.errors import ValidationError

_EMAIL = re.compile(r"^\S+@\S+\.\S+$")
_PHONE = re.compile(r"^[0-9+\-\s()]{7,15}$")


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    email: str
    phone: str


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def is_valid_email(email) -> bool:
    return isinstance(email, str) and len(email) <= 255 and bool(_EMAIL.match(email))


def is_valid_phone(phone) -> bool:
    return isinstance(phone, str) and bool(_PHONE.match(phone))


def validate_customer(name, email, phone) -> CustomerInfo:
    """Returns cleaned customer info or raises ValidationError listing every bad field."""
    name = name.strip() if isinstance(name, str) else ""
    email = email.strip() if isinstance(email, str) else ""
    phone = phone.strip() if isinstance(phone, str) else ""

    errors = {}
    if not name:
        errors["customer_name"] = "Full name is required"
    elif len(name) > 120:
        errors["customer_name"] = "Full name is too long"
    if not is_valid_email(email):
        errors["customer_email"] = "Enter a valid email address"
    if not is_valid_phone(phone):
        errors["customer_phone"] = "Enter a valid phone number"

    if errors:
        raise ValidationError("Invalid customer details", fields=errors)
    return CustomerInfo(name=name, email=normalize_email(email), phone=phone)


def parse_date(value, field: str = "date") -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat((value or "").strip())
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"Invalid {field}. Use YYYY-MM-DD", fields={field: "Use YYYY-MM-DD"}) from None
