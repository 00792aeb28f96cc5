"""Domain errors raised by the booking services.

Every error belongs to one of four categories, each mapped to an HTTP status
by the handler registered in ``app.py``:

    ValidationError  400  deterministic given the inputs
    StateConflict    409  blocked by a prior or concurrent state change
    Unauthorized     403  acting identity may not perform the transition
    NotFound         404  referenced row does not exist

Usage:
    from services.errors import SlotUnavailable

    raise SlotUnavailable(slot_ids=["..."])
"""

from typing import Any


class BookingError(Exception):
    """Base class for booking domain errors."""

    status_code: int = 500
    error: str = "booking_error"
    detail: str = "Booking operation failed"

    def __init__(self, detail: str | None = None, **context: Any) -> None:
        self.detail = detail or self.__class__.detail
        self.context = context if context else None
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.error, "detail": self.detail}
        if self.context:
            body["context"] = self.context
        return body


# ---------- categories ----------

class ValidationError(BookingError):
    status_code = 400
    error = "validation_error"
    detail = "Invalid request"


class StateConflict(BookingError):
    status_code = 409
    error = "state_conflict"
    detail = "Request conflicts with current state"


class Unauthorized(BookingError):
    status_code = 403
    error = "unauthorized"
    detail = "Not permitted to perform this action"


class NotFound(BookingError):
    status_code = 404
    error = "not_found"
    detail = "Resource not found"


# ---------- validation ----------

class DurationTooShort(ValidationError):
    error = "duration_too_short"
    detail = "Event duration is too short for the configured slot duration"


class NonConsecutiveSlots(ValidationError):
    error = "non_consecutive_slots"
    detail = "Slots must be consecutive"


class ConsecutiveNotAllowed(ValidationError):
    error = "consecutive_not_allowed"
    detail = "This event does not allow booking consecutive slots"


class TooManySlots(ValidationError):
    error = "too_many_slots"
    detail = "Too many consecutive slots requested"


class EventNotBookable(ValidationError):
    error = "event_not_bookable"
    detail = "Event is not open for bookings"


class CrossEventBooking(ValidationError):
    error = "cross_event_booking"
    detail = "All slots must belong to the same event"


class InvalidInitiator(ValidationError):
    error = "invalid_initiator"
    detail = "Requester and requestee do not match the initiator role"


class B2BNotAllowed(ValidationError):
    error = "b2b_not_allowed"
    detail = "This event does not allow B2B bookings"


class InvalidSlotDuration(ValidationError):
    error = "invalid_slot_duration"
    detail = "Slot duration must be one of 20, 30, 60 minutes"


class InvalidTimeRange(ValidationError):
    error = "invalid_time_range"
    detail = "Start time must be before end time"


class InvalidConsecutiveLimit(ValidationError):
    error = "invalid_consecutive_limit"
    detail = "max_consecutive_slots must be at least 1"


class InvalidEventSetting(ValidationError):
    error = "invalid_event_setting"
    detail = "Invalid event setting"


class InvalidDecision(ValidationError):
    error = "invalid_decision"
    detail = "Decision must be 'accept' or 'decline'"


class InvalidStatusTransition(ValidationError):
    error = "invalid_status_transition"
    detail = "Event status change not allowed"


# ---------- state conflicts ----------

class SlotUnavailable(StateConflict):
    error = "slot_unavailable"
    detail = "One or more slots are not available"


class AlreadyCancelled(StateConflict):
    error = "already_cancelled"
    detail = "Booking is already cancelled"


class NotPending(StateConflict):
    error = "not_pending"
    detail = "B2B request is not pending"


class NotAccepted(StateConflict):
    error = "not_accepted"
    detail = "B2B request is not accepted"


class PartnershipFull(StateConflict):
    error = "partnership_full"
    detail = "This slot already has the maximum number of B2B partners"


class AlreadyPartner(StateConflict):
    error = "already_partner"
    detail = "This user is already a B2B partner for this booking"


class DuplicatePending(StateConflict):
    error = "duplicate_pending"
    detail = "There is already a pending B2B request for this user"


class BookingNotConfirmed(StateConflict):
    error = "booking_not_confirmed"
    detail = "Booking is not confirmed"


class EventNotEditable(StateConflict):
    error = "event_not_editable"
    detail = "Event can no longer be changed this way"
