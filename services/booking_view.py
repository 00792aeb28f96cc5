"""Read-only summaries of bookings and their partnerships."""

from datetime import datetime, timedelta
from itertools import groupby

from flask import current_app

from models import db
from models.event import Event
from models.slot import TimeSlot
from models.booking import SlotBooking
from models.b2b_request import B2BRequest
from models.enums import B2BStatus, BookingStatus
from services import b2b
from services.allocator import get_booking


def booking_to_dict(booking: SlotBooking) -> dict:
    return {
        "id": booking.id,
        "group_id": booking.group_id,
        "slot_id": booking.slot_id,
        "performer_id": booking.performer_id,
        "status": booking.status.value,
        "created_at": booking.created_at.isoformat(),
        "updated_at": booking.updated_at.isoformat(),
    }


def request_to_dict(request: B2BRequest) -> dict:
    return {
        "id": request.id,
        "booking_id": request.booking_id,
        "requester_id": request.requester_id,
        "requestee_id": request.requestee_id,
        "initiated_by": request.initiated_by.value,
        "status": request.status.value,
        "created_at": request.created_at.isoformat(),
    }


def _runs(rows):
    """Split one group's (booking, slot) rows into contiguous same-status runs."""
    run = []
    for booking, slot in rows:
        if run:
            prev_booking, prev_slot = run[-1]
            if slot.slot_index != prev_slot.slot_index + 1 or booking.status != prev_booking.status:
                yield run
                run = []
        run.append((booking, slot))
    if run:
        yield run


def bookings_for_performer(performer_id: str, now: datetime | None = None) -> list[dict]:
    """
    One summary per run of contiguous bookings from the same claim.
    Cancelled runs drop out once they have been cancelled longer than
    CANCELLED_BOOKING_VISIBILITY_MINUTES.
    """
    now = now or datetime.utcnow()
    visibility = timedelta(minutes=current_app.config.get("CANCELLED_BOOKING_VISIBILITY_MINUTES", 60))

    rows = (
        db.session.query(SlotBooking, TimeSlot, Event)
        .join(TimeSlot, SlotBooking.slot_id == TimeSlot.id)
        .join(Event, TimeSlot.event_id == Event.id)
        .filter(SlotBooking.performer_id == performer_id)
        .order_by(SlotBooking.group_id.asc(), TimeSlot.slot_index.asc())
        .all()
    )
    events = {event.id: event for _, _, event in rows}

    booking_ids = [booking.id for booking, _, _ in rows]
    requests = []
    if booking_ids:
        requests = B2BRequest.query.filter(
            B2BRequest.booking_id.in_(booking_ids),
            B2BRequest.status.in_([B2BStatus.PENDING, B2BStatus.ACCEPTED]),
        ).all()

    partners = {}
    pending = set()
    for r in requests:
        if r.status == B2BStatus.ACCEPTED:
            partners.setdefault(r.booking_id, set()).add(r.other_party(performer_id))
        else:
            pending.add(r.booking_id)

    summaries = []
    for group_id, group_rows in groupby(rows, key=lambda row: row[0].group_id):
        for run in _runs([(booking, slot) for booking, slot, _ in group_rows]):
            bookings = [booking for booking, _ in run]
            status = bookings[0].status
            last_change = max(b.updated_at for b in bookings)
            if status == BookingStatus.CANCELLED and last_change < now - visibility:
                continue

            event = events[run[0][1].event_id]
            run_partners = set()
            if status == BookingStatus.CONFIRMED:
                for b in bookings:
                    run_partners |= partners.get(b.id, set())

            summaries.append({
                "group_id": group_id,
                "event_id": event.id,
                "event_title": event.title,
                "event_date": event.event_date.isoformat(),
                "booking_ids": [b.id for b in bookings],
                "slot_ids": [slot.id for _, slot in run],
                "start_time": run[0][1].start_time.isoformat(),
                "end_time": run[-1][1].end_time.isoformat(),
                "status": status.value,
                "partners": sorted(run_partners),
                "has_pending_b2b": any(b.id in pending for b in bookings),
            })

    summaries.sort(key=lambda s: (s["start_time"], s["event_id"]))
    return summaries


def booking_detail(booking_id: str) -> dict:
    booking = get_booking(booking_id)
    slot = booking.slot
    event = slot.event

    pending = (
        B2BRequest.query
        .filter_by(booking_id=booking.id, status=B2BStatus.PENDING)
        .order_by(B2BRequest.created_at.asc())
        .all()
    )

    return {
        "booking": booking_to_dict(booking),
        "event_id": event.id,
        "event_title": event.title,
        "event_date": event.event_date.isoformat(),
        "slot_index": slot.slot_index,
        "slot_start_time": slot.start_time.isoformat(),
        "slot_end_time": slot.end_time.isoformat(),
        "allow_b2b": event.allow_b2b,
        "partners": sorted(b2b.partners_for_booking(booking.id)),
        "pending_requests": [request_to_dict(r) for r in pending],
    }
