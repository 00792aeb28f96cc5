import enum

from models.db import db

# Allowed slot lengths, in minutes
SLOT_DURATIONS = (20, 30, 60)


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


BOOKABLE_EVENT_STATUSES = (EventStatus.PUBLISHED, EventStatus.ACTIVE)


class SlotStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class B2BStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"


class B2BInitiator(str, enum.Enum):
    BOOKER = "booker"
    REQUESTER = "requester"


class B2BDecision(str, enum.Enum):
    ACCEPT = "accept"
    DECLINE = "decline"


def enum_column_type(enum_cls, length=20):
    """Store enums by value in a plain string column (no native DB enum)."""
    return db.Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda e: [m.value for m in e],
        validate_strings=True,
    )
