import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as slotqueue.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "slotqueue.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Identity is resolved by the upstream gateway, which sets these headers
    AUTH_USER_HEADER = os.getenv("AUTH_USER_HEADER", "X-User-Id")
    AUTH_CAPABILITIES_HEADER = os.getenv("AUTH_CAPABILITIES_HEADER", "X-User-Capabilities")

    # Slot lengths a host may choose (minutes)
    SLOT_DURATIONS = (20, 30, 60)

    # B2B: partners besides the original performer (3 participants total)
    MAX_B2B_PARTNERS = int(os.getenv("MAX_B2B_PARTNERS", "2"))

    # Cancelled bookings stay in "my bookings" for this long
    CANCELLED_BOOKING_VISIBILITY_MINUTES = int(os.getenv("CANCELLED_BOOKING_VISIBILITY_MINUTES", "60"))

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
