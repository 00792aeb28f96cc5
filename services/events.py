import logging
from datetime import datetime

from flask import current_app
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from models import db
from models.db import atomic
from models.event import Event
from models.slot import TimeSlot
from models.booking import BookingGroup, SlotBooking
from models.enums import BOOKABLE_EVENT_STATUSES, SLOT_DURATIONS, BookingStatus, EventStatus, SlotStatus
from security.capabilities import MANAGE_ANY_EVENT, Actor
from services import slot_planner
from services.errors import (
    DurationTooShort,
    EventNotEditable,
    InvalidConsecutiveLimit,
    InvalidEventSetting,
    InvalidSlotDuration,
    InvalidStatusTransition,
    InvalidTimeRange,
    NotFound,
    Unauthorized,
)

logger = logging.getLogger(__name__)

# Fields that shape the slot plan; frozen once slots exist
_PLAN_FIELDS = {"start_time", "end_time", "event_date", "slot_duration_minutes"}
_SETTING_FIELDS = {"title", "description", "allow_consecutive_slots", "max_consecutive_slots", "allow_b2b"}

# published is reachable only through publish_event
_STATUS_TRANSITIONS = {
    EventStatus.DRAFT: {EventStatus.CANCELLED},
    EventStatus.PUBLISHED: {EventStatus.ACTIVE, EventStatus.CANCELLED},
    EventStatus.ACTIVE: {EventStatus.COMPLETED, EventStatus.CANCELLED},
    EventStatus.COMPLETED: set(),
    EventStatus.CANCELLED: set(),
}


def get_event(event_id: str) -> Event:
    event = db.session.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found", event_id=event_id)
    return event


def _check_host(event: Event, actor: Actor):
    if not actor.owns_or_can(event.host_id, MANAGE_ANY_EVENT):
        raise Unauthorized("Only the host can manage this event")


def _validate_settings(slot_duration_minutes, start_time, end_time, max_consecutive_slots):
    allowed = current_app.config.get("SLOT_DURATIONS", SLOT_DURATIONS)
    if slot_duration_minutes not in allowed:
        raise InvalidSlotDuration(
            f"Invalid slot duration. Must be one of: {', '.join(str(d) for d in allowed)}",
            slot_duration_minutes=slot_duration_minutes,
        )
    if start_time >= end_time:
        raise InvalidTimeRange()
    if isinstance(max_consecutive_slots, bool) or not isinstance(max_consecutive_slots, int):
        raise InvalidConsecutiveLimit("max_consecutive_slots must be a whole number")
    if max_consecutive_slots < 1:
        raise InvalidConsecutiveLimit()


def _validate_flags(**flags):
    for name, value in flags.items():
        if not isinstance(value, bool):
            raise InvalidEventSetting(f"{name} must be true or false", field=name)


def create_event(
    host_id: str,
    title: str,
    start_time: datetime,
    end_time: datetime,
    event_date: datetime | None = None,
    description: str | None = None,
    slot_duration_minutes: int = 20,
    allow_consecutive_slots: bool = False,
    max_consecutive_slots: int = 1,
    allow_b2b: bool = True,
) -> Event:
    _validate_settings(slot_duration_minutes, start_time, end_time, max_consecutive_slots)
    _validate_flags(allow_consecutive_slots=allow_consecutive_slots, allow_b2b=allow_b2b)

    event = Event(
        host_id=host_id,
        title=title,
        description=description,
        slot_duration_minutes=slot_duration_minutes,
        allow_consecutive_slots=allow_consecutive_slots,
        max_consecutive_slots=max_consecutive_slots,
        allow_b2b=allow_b2b,
        event_date=event_date or start_time,
        start_time=start_time,
        end_time=end_time,
        status=EventStatus.DRAFT,
    )
    db.session.add(event)
    db.session.commit()
    return event


def update_event(event_id: str, actor: Actor, **changes) -> Event:
    event = get_event(event_id)
    _check_host(event, actor)

    unknown = set(changes) - _PLAN_FIELDS - _SETTING_FIELDS - {"status"}
    if unknown:
        raise EventNotEditable(f"Unknown or read-only fields: {', '.join(sorted(unknown))}")

    if _PLAN_FIELDS.intersection(changes) and event.status != EventStatus.DRAFT:
        raise EventNotEditable("Time range and slot duration are fixed once an event is published")

    _validate_settings(
        changes.get("slot_duration_minutes", event.slot_duration_minutes),
        changes.get("start_time", event.start_time),
        changes.get("end_time", event.end_time),
        changes.get("max_consecutive_slots", event.max_consecutive_slots),
    )
    _validate_flags(**{k: v for k, v in changes.items() if k in ("allow_consecutive_slots", "allow_b2b")})

    if "status" in changes:
        try:
            new_status = EventStatus(changes.pop("status"))
        except ValueError:
            raise InvalidStatusTransition("Unknown event status")
        if new_status != event.status and new_status not in _STATUS_TRANSITIONS[event.status]:
            raise InvalidStatusTransition(
                f"Cannot move event from {event.status.value} to {new_status.value}"
            )
        event.status = new_status

    for name, value in changes.items():
        setattr(event, name, value)

    event.updated_at = datetime.utcnow()
    db.session.commit()
    return event


def publish_event(event_id: str, actor: Actor) -> Event:
    """Move a draft event to published and create its slot rows in one commit."""
    event = get_event(event_id)
    _check_host(event, actor)

    if event.status != EventStatus.DRAFT:
        raise EventNotEditable("Only draft events can be published")

    plan = slot_planner.generate(event.start_time, event.end_time, event.slot_duration_minutes)
    if not plan:
        raise DurationTooShort()

    event_id = event.id
    now = datetime.utcnow()
    try:
        with atomic():
            # a concurrent publish may have flipped the status after our read
            result = db.session.execute(
                update(Event)
                .where(Event.id == event_id, Event.status == EventStatus.DRAFT)
                .values(status=EventStatus.PUBLISHED, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise EventNotEditable("Only draft events can be published")

            for definition in plan:
                db.session.add(TimeSlot(
                    event_id=event_id,
                    slot_index=definition.slot_index,
                    start_time=definition.start_time,
                    end_time=definition.end_time,
                    created_at=now,
                    updated_at=now,
                ))
    except IntegrityError:
        # uq_time_slots_event_index fired: slots for this event already exist
        logger.warning("Slot plan for event %s already exists; publish rolled back", event_id)
        raise EventNotEditable("Event slots already exist", event_id=event_id)

    return event


def delete_event(event_id: str, actor: Actor) -> None:
    event = get_event(event_id)
    _check_host(event, actor)

    has_bookings = (
        db.session.query(BookingGroup.id)
        .filter(BookingGroup.event_id == event.id)
        .first()
    )
    if has_bookings:
        raise EventNotEditable("Events with bookings cannot be deleted")

    # slots go with the event (delete-orphan cascade)
    db.session.delete(event)
    db.session.commit()


def get_event_with_slots(event_id: str) -> dict:
    event = get_event(event_id)
    slots = (
        TimeSlot.query
        .filter_by(event_id=event.id)
        .order_by(TimeSlot.slot_index.asc())
        .all()
    )

    slot_ids = [s.id for s in slots]
    performers = {}
    if slot_ids:
        performers = {
            b.slot_id: b.performer_id
            for b in SlotBooking.query.filter(
                SlotBooking.slot_id.in_(slot_ids),
                SlotBooking.status == BookingStatus.CONFIRMED,
            ).all()
        }

    return {
        "event": event_to_dict(event),
        "slots": [
            {
                "id": s.id,
                "slot_index": s.slot_index,
                "start_time": s.start_time.isoformat(),
                "end_time": s.end_time.isoformat(),
                "status": s.status.value,
                "performer_id": performers.get(s.id),
            }
            for s in slots
        ],
    }


def _slot_counts(event_ids) -> dict:
    """{event_id: {SlotStatus: count}} in one grouped query."""
    counts = {event_id: {} for event_id in event_ids}
    if not counts:
        return counts

    rows = (
        db.session.query(TimeSlot.event_id, TimeSlot.status, func.count(TimeSlot.id))
        .filter(TimeSlot.event_id.in_(list(counts)))
        .group_by(TimeSlot.event_id, TimeSlot.status)
        .all()
    )
    for event_id, status, n in rows:
        counts[event_id][status] = n
    return counts


def list_bookable_events() -> list[dict]:
    """Published and active events, soonest first, with how many slots are still free."""
    events = (
        Event.query
        .filter(Event.status.in_(BOOKABLE_EVENT_STATUSES))
        .order_by(Event.start_time.asc())
        .all()
    )
    counts = _slot_counts([e.id for e in events])

    out = []
    for event in events:
        by_status = counts[event.id]
        item = event_to_dict(event)
        item["total_slots"] = sum(by_status.values())
        item["available_slots"] = by_status.get(SlotStatus.AVAILABLE, 0)
        out.append(item)
    return out


def events_for_host(host_id: str) -> list[dict]:
    events = (
        Event.query
        .filter_by(host_id=host_id)
        .order_by(Event.start_time.asc())
        .all()
    )
    counts = _slot_counts([e.id for e in events])

    out = []
    for event in events:
        by_status = counts[event.id]
        item = event_to_dict(event)
        item["total_slots"] = sum(by_status.values())
        item["booked_slots"] = by_status.get(SlotStatus.BOOKED, 0)
        out.append(item)
    return out


def event_to_dict(event: Event) -> dict:
    return {
        "id": event.id,
        "host_id": event.host_id,
        "title": event.title,
        "description": event.description,
        "slot_duration_minutes": event.slot_duration_minutes,
        "allow_consecutive_slots": event.allow_consecutive_slots,
        "max_consecutive_slots": event.max_consecutive_slots,
        "allow_b2b": event.allow_b2b,
        "event_date": event.event_date.isoformat(),
        "start_time": event.start_time.isoformat(),
        "end_time": event.end_time.isoformat(),
        "status": event.status.value,
    }
