from datetime import datetime
from models.db import db

PENDING = "PENDING"
CONFIRMED = "CONFIRMED"
COMPLETED = "COMPLETED"
CANCELLED = "CANCELLED"
FAILED = "FAILED"
REFUNDED = "REFUNDED"

STATUSES = (PENDING, CONFIRMED, COMPLETED, CANCELLED, FAILED, REFUNDED)

# statuses that keep the slot taken
ACTIVE_STATUSES = (PENDING, CONFIRMED)


def slot_hold_key(facility_id, booking_date, start_time, end_time) -> str:
    return f"{facility_id}|{booking_date.isoformat()}|{start_time}|{end_time}"


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    facility_id = db.Column(db.Integer, db.ForeignKey("facilities.id"), nullable=False, index=True)
    facility_type = db.Column(db.String(20), nullable=False)
    facility_name = db.Column(db.String(120), nullable=False)

    booking_date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM, 24h
    end_time = db.Column(db.String(5), nullable=False)

    price = db.Column(db.Numeric(10, 2), nullable=False)

    customer_name = db.Column(db.String(120), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False, index=True)
    customer_phone = db.Column(db.String(30), nullable=False)

    status = db.Column(db.String(20), nullable=False, default=PENDING)
    # status values: PENDING, CONFIRMED, COMPLETED, CANCELLED, FAILED, REFUNDED

    payment_ref = db.Column(db.String(255), nullable=True)
    refund_amount = db.Column(db.Numeric(10, 2), nullable=True)
    cancel_reason = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # "<facility>|<date>|<start>|<end>" while PENDING/CONFIRMED, NULL otherwise
    slot_hold = db.Column(db.String(80), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        # Hard business-rule: one active booking per facility/date/slot (prevents double booking)
        db.UniqueConstraint("slot_hold", name="uq_booking_slot_hold"),
        db.Index("ix_bookings_facility_date", "facility_id", "booking_date"),
    )

    @property
    def hold_key(self) -> str:
        return slot_hold_key(self.facility_id, self.booking_date, self.start_time, self.end_time)
