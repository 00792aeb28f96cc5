"""Claim and release slots.

A claim is race-free without table locks: each slot moves to booked through a
conditional UPDATE (``... WHERE status = 'available'``). If any of those
updates matches no row, another claim got there first and the whole batch is
rolled back. The partial unique index on confirmed bookings is the last line
behind that check.
"""

import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from models import db
from models.db import atomic
from models.event import Event
from models.slot import TimeSlot
from models.booking import BookingGroup, SlotBooking
from models.b2b_request import B2BRequest
from models.enums import BOOKABLE_EVENT_STATUSES, B2BStatus, BookingStatus, SlotStatus
from security.capabilities import CANCEL_ANY_BOOKING, Actor
from services.errors import (
    AlreadyCancelled,
    ConsecutiveNotAllowed,
    CrossEventBooking,
    EventNotBookable,
    NonConsecutiveSlots,
    NotFound,
    SlotUnavailable,
    TooManySlots,
    Unauthorized,
)

logger = logging.getLogger(__name__)


def get_booking(booking_id: str) -> SlotBooking:
    booking = db.session.get(SlotBooking, booking_id)
    if booking is None:
        raise NotFound("Booking not found", booking_id=booking_id)
    return booking


def _load_slots(slot_ids) -> list[TimeSlot]:
    if not slot_ids:
        raise NotFound("No slots provided")

    slots = TimeSlot.query.filter(TimeSlot.id.in_(slot_ids)).all()
    # duplicates in slot_ids also land here
    if len(slots) != len(slot_ids):
        raise NotFound("One or more slots not found")
    return sorted(slots, key=lambda s: s.slot_index)


def _validate_claim(slots: list[TimeSlot], event_id: str | None = None) -> Event:
    """Run the claim checks in order; returns the owning event."""
    if len({s.event_id for s in slots}) > 1:
        raise CrossEventBooking()
    if event_id is not None and slots[0].event_id != event_id:
        raise CrossEventBooking("Slots do not belong to this event")

    taken = [s.id for s in slots if s.status != SlotStatus.AVAILABLE]
    if taken:
        raise SlotUnavailable(slot_ids=taken)

    for prev, cur in zip(slots, slots[1:]):
        if cur.slot_index != prev.slot_index + 1:
            raise NonConsecutiveSlots()

    event = db.session.get(Event, slots[0].event_id)
    if event is None:
        raise NotFound("Event not found", event_id=slots[0].event_id)

    if event.status not in BOOKABLE_EVENT_STATUSES:
        raise EventNotBookable()

    if len(slots) > 1 and not event.allow_consecutive_slots:
        raise ConsecutiveNotAllowed()

    if len(slots) > event.max_consecutive_slots:
        raise TooManySlots(f"Maximum {event.max_consecutive_slots} consecutive slot(s) allowed")

    return event


def _claim_slot(slot_id: str, now: datetime):
    result = db.session.execute(
        update(TimeSlot)
        .where(TimeSlot.id == slot_id, TimeSlot.status == SlotStatus.AVAILABLE)
        .values(status=SlotStatus.BOOKED, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning("Slot %s was claimed concurrently; rolling back batch", slot_id)
        raise SlotUnavailable(slot_ids=[slot_id])


def book_slots(slot_ids, performer_id: str, event_id: str | None = None) -> list[SlotBooking]:
    """
    Book one slot, or a run of consecutive slots, for a performer.
    All slots transition and all bookings are created, or nothing is.
    """
    slots = _load_slots(list(slot_ids))
    event = _validate_claim(slots, event_id)

    claimed_ids = [s.id for s in slots]
    now = datetime.utcnow()
    try:
        with atomic():
            for slot in slots:
                _claim_slot(slot.id, now)

            group = BookingGroup(event_id=event.id, performer_id=performer_id, created_at=now)
            db.session.add(group)
            bookings = [
                SlotBooking(
                    group=group,
                    slot_id=slot.id,
                    performer_id=performer_id,
                    status=BookingStatus.CONFIRMED,
                    created_at=now,
                    updated_at=now,
                )
                for slot in slots
            ]
            db.session.add_all(bookings)
    except IntegrityError:
        # uq_slot_bookings_confirmed_slot fired: a confirmed booking already exists
        logger.warning("Confirmed-booking index rejected claim on %s", claimed_ids)
        raise SlotUnavailable(slot_ids=claimed_ids)

    return bookings


def _release(booking: SlotBooking, now: datetime):
    """Cancel one booking, free its slot and end every partnership on it."""
    result = db.session.execute(
        update(SlotBooking)
        .where(SlotBooking.id == booking.id, SlotBooking.status == BookingStatus.CONFIRMED)
        .values(status=BookingStatus.CANCELLED, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise AlreadyCancelled(booking_id=booking.id)

    db.session.execute(
        update(TimeSlot)
        .where(TimeSlot.id == booking.slot_id, TimeSlot.status == SlotStatus.BOOKED)
        .values(status=SlotStatus.AVAILABLE, updated_at=now)
        .execution_options(synchronize_session=False)
    )

    # Pending requests can no longer be answered, and accepted partners
    # would otherwise point at a booking that no longer exists.
    db.session.execute(
        update(B2BRequest)
        .where(
            B2BRequest.booking_id == booking.id,
            B2BRequest.status.in_([B2BStatus.PENDING, B2BStatus.ACCEPTED]),
        )
        .values(status=B2BStatus.CANCELLED, updated_at=now)
        .execution_options(synchronize_session=False)
    )


def cancel_booking(booking_id: str, actor: Actor | None = None) -> SlotBooking:
    booking = get_booking(booking_id)

    if actor is not None and not actor.owns_or_can(booking.performer_id, CANCEL_ANY_BOOKING):
        raise Unauthorized("Only the performer can cancel this booking")

    if booking.status == BookingStatus.CANCELLED:
        raise AlreadyCancelled(booking_id=booking.id)

    with atomic():
        _release(booking, datetime.utcnow())

    return booking


def cancel_booking_group(group_id: str, actor: Actor | None = None) -> list[SlotBooking]:
    """Cancel every still-confirmed booking of one claim together."""
    group = db.session.get(BookingGroup, group_id)
    if group is None:
        raise NotFound("Booking group not found", group_id=group_id)

    if actor is not None and not actor.owns_or_can(group.performer_id, CANCEL_ANY_BOOKING):
        raise Unauthorized("Only the performer can cancel this booking")

    confirmed = [b for b in group.bookings if b.status == BookingStatus.CONFIRMED]
    if not confirmed:
        raise AlreadyCancelled(group_id=group.id)

    now = datetime.utcnow()
    with atomic():
        for booking in confirmed:
            _release(booking, now)

    return sorted(group.bookings, key=lambda b: b.slot.slot_index)
