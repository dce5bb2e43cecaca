import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as cricketslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "cricketslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Shared secret for the admin dashboard / support tooling (X-Admin-Token header)
    ADMIN_API_TOKEN = os.getenv("ADMIN_API_TOKEN")

    # Payment provider callback
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")

    # Daily slot catalog per facility type (24h clock, minutes per slot)
    SLOT_CATALOG = {
        "ground": {"open": "06:00", "close": "21:00", "minutes": 60},
        "net": {"open": "06:00", "close": "21:00", "minutes": 60},
    }

    # Cancellation policy (0 = any time before the slot starts)
    CANCEL_CUTOFF_HOURS = int(os.getenv("CANCEL_CUTOFF_HOURS", "0"))

    # Customers cannot book a slot that has already started
    BOOKING_REJECT_STARTED_SLOTS = os.getenv("BOOKING_REJECT_STARTED_SLOTS", "true").lower() == "true"

    # Listing endpoints
    BOOKINGS_PAGE_LIMIT = 200

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    ADMIN_API_TOKEN = "test-admin-token"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    BOOKING_REJECT_STARTED_SLOTS = False
