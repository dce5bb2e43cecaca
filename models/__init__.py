from .db import db
from .audit_log import AuditLog
from .facility import Facility
from .booking import Booking
