from datetime import datetime
from models.db import db

FACILITY_TYPES = ("ground", "net")

class Facility(db.Model):
    __tablename__ = "facilities"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    facility_type = db.Column(db.String(20), nullable=False, index=True)  # ground, net
    description = db.Column(db.Text, nullable=True)
    location = db.Column(db.String(160), nullable=True)

    price_per_hour = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    is_available = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("facility_type", "name", name="uq_facility_type_name"),
    )
