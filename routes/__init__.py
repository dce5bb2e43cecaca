from .health import health_bp
from .facilities import facilities_bp
from .booking import booking_bp
from .admin import admin_bp
from .stripe_webhook import webhook_bp
from .audit_logs import audit_bp
