class BookingError(Exception):
    """Base for every expected booking failure.

    Carries the HTTP status and a stable code so the UI can tell
    "someone else took the slot" apart from "fix your input".
    """

    status_code = 400
    code = "booking_error"

    def __init__(self, message: str, fields=None):
        super().__init__(message)
        self.message = message
        self.fields = fields or {}

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": self.code}
        if self.fields:
            body["fields"] = self.fields
        return body


class ValidationError(BookingError):
    status_code = 400
    code = "invalid_input"


class InvalidSlotError(BookingError):
    status_code = 400
    code = "invalid_slot"


class FacilityUnavailableError(BookingError):
    status_code = 404
    code = "facility_unavailable"


class BookingNotFoundError(BookingError):
    status_code = 404
    code = "booking_not_found"


class ConflictError(BookingError):
    status_code = 409
    code = "slot_taken"


class InvalidTransitionError(BookingError):
    status_code = 409
    code = "invalid_transition"


class FacilityConflictError(BookingError):
    status_code = 409
    code = "facility_conflict"
