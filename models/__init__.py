from .db import db
from .event import Event
from .slot import TimeSlot
from .booking import BookingGroup, SlotBooking
from .b2b_request import B2BRequest
from .audit_log import AuditLog
