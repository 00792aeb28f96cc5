from datetime import datetime, timedelta

import pytest

from models import db
from models.event import Event
from models.slot import TimeSlot
from models.enums import EventStatus, SlotStatus
from security.capabilities import MANAGE_ANY_EVENT, Actor
from services import events as event_service
from services.allocator import book_slots
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

from conftest import EVENT_END, EVENT_START, HOST


def test_create_event_starts_as_draft_without_slots(make_event):
    event = make_event(publish=False)

    assert event.status == EventStatus.DRAFT
    assert event.event_date == EVENT_START
    assert TimeSlot.query.filter_by(event_id=event.id).count() == 0


@pytest.mark.parametrize("overrides,error", [
    ({"slot_duration_minutes": 45}, InvalidSlotDuration),
    ({"end_time": EVENT_START}, InvalidTimeRange),
    ({"start_time": EVENT_END + timedelta(hours=1)}, InvalidTimeRange),
    ({"max_consecutive_slots": 0}, InvalidConsecutiveLimit),
])
def test_create_event_rejects_bad_settings(make_event, overrides, error):
    with pytest.raises(error):
        make_event(publish=False, **overrides)
    assert Event.query.count() == 0


def test_publish_generates_contiguous_slots(make_event):
    event = make_event()

    assert event.status == EventStatus.PUBLISHED
    slots = event.slots
    assert [s.slot_index for s in slots] == [0, 1, 2, 3]
    assert all(s.status == SlotStatus.AVAILABLE for s in slots)
    assert slots[0].start_time == EVENT_START
    assert slots[-1].end_time == EVENT_END


def test_publish_too_short_event_fails_and_stays_draft(make_event, host):
    event = make_event(
        publish=False,
        start_time=datetime(2026, 11, 6, 20, 0),
        end_time=datetime(2026, 11, 6, 20, 15),
        slot_duration_minutes=20,
    )

    with pytest.raises(DurationTooShort):
        event_service.publish_event(event.id, host)

    assert db.session.get(Event, event.id).status == EventStatus.DRAFT
    assert TimeSlot.query.count() == 0


def test_publish_only_once(make_event, host):
    event = make_event()

    with pytest.raises(EventNotEditable):
        event_service.publish_event(event.id, host)
    assert TimeSlot.query.filter_by(event_id=event.id).count() == 4


def test_publish_requires_host_or_capability(make_event):
    event = make_event(publish=False)

    with pytest.raises(Unauthorized):
        event_service.publish_event(event.id, Actor(user_id="someone-else"))

    operator = Actor(user_id="ops", capabilities=frozenset({MANAGE_ANY_EVENT}))
    assert event_service.publish_event(event.id, operator).status == EventStatus.PUBLISHED


def test_unknown_event(app, host):
    with pytest.raises(NotFound):
        event_service.publish_event("missing", host)


def test_plan_fields_frozen_after_publish(make_event, host):
    event = make_event()

    with pytest.raises(EventNotEditable):
        event_service.update_event(event.id, host, slot_duration_minutes=60)

    updated = event_service.update_event(event.id, host, title="Late Set", allow_b2b=False)
    assert updated.title == "Late Set"
    assert updated.allow_b2b is False


def test_draft_plan_can_change(make_event, host):
    event = make_event(publish=False)

    updated = event_service.update_event(event.id, host, slot_duration_minutes=60)
    event_service.publish_event(event.id, host)

    assert len(updated.slots) == 2


def test_status_transitions(make_event, host):
    event = make_event()

    assert event_service.update_event(event.id, host, status="active").status == EventStatus.ACTIVE
    with pytest.raises(InvalidStatusTransition):
        event_service.update_event(event.id, host, status="draft")
    with pytest.raises(InvalidStatusTransition):
        event_service.update_event(event.id, host, status="published")
    with pytest.raises(InvalidStatusTransition):
        event_service.update_event(event.id, host, status="sold_out")
    assert event_service.update_event(event.id, host, status="completed").status == EventStatus.COMPLETED


def test_delete_event_only_without_bookings(make_event, host):
    booked = make_event()
    book_slots([booked.slots[0].id], "dj-a")
    with pytest.raises(EventNotEditable):
        event_service.delete_event(booked.id, host)

    empty = make_event()
    event_service.delete_event(empty.id, host)
    assert db.session.get(Event, empty.id) is None
    assert TimeSlot.query.filter_by(event_id=empty.id).count() == 0


def test_event_with_slots_shows_performer(make_event):
    event = make_event()
    book_slots([event.slots[1].id], "dj-a")

    view = event_service.get_event_with_slots(event.id)

    assert view["event"]["status"] == "published"
    assert [s["performer_id"] for s in view["slots"]] == [None, "dj-a", None, None]
    assert [s["status"] for s in view["slots"]] == ["available", "booked", "available", "available"]


@pytest.mark.parametrize("overrides", [
    {"allow_b2b": "false"},
    {"allow_consecutive_slots": 1},
])
def test_flags_must_be_booleans(make_event, host, overrides):
    with pytest.raises(InvalidEventSetting):
        make_event(publish=False, **overrides)

    event = make_event(publish=False)
    with pytest.raises(InvalidEventSetting):
        event_service.update_event(event.id, host, **overrides)
    assert db.session.get(Event, event.id).allow_b2b is True


def test_consecutive_limit_must_be_a_number(make_event):
    with pytest.raises(InvalidConsecutiveLimit):
        make_event(publish=False, max_consecutive_slots=None)


def test_publish_rolls_back_when_slots_already_exist(make_event, host):
    event = make_event(publish=False)
    # slots written by a concurrent publish that this one did not see
    db.session.add(TimeSlot(event_id=event.id, slot_index=0, start_time=EVENT_START,
                            end_time=EVENT_START + timedelta(minutes=30)))
    db.session.commit()

    with pytest.raises(EventNotEditable):
        event_service.publish_event(event.id, host)

    assert db.session.get(Event, event.id).status == EventStatus.DRAFT
    assert TimeSlot.query.filter_by(event_id=event.id).count() == 1


def test_list_bookable_events(make_event, host):
    later = make_event(start_time=datetime(2026, 11, 7, 20, 0), end_time=datetime(2026, 11, 7, 21, 0))
    sooner = make_event()
    make_event(publish=False)
    cancelled = make_event()
    event_service.update_event(cancelled.id, host, status="cancelled")
    event_service.update_event(later.id, host, status="active")
    book_slots([sooner.slots[0].id, sooner.slots[1].id], "dj-a")

    listed = event_service.list_bookable_events()

    assert [e["id"] for e in listed] == [sooner.id, later.id]
    assert (listed[0]["total_slots"], listed[0]["available_slots"]) == (4, 2)
    assert (listed[1]["total_slots"], listed[1]["available_slots"]) == (2, 2)
    assert listed[1]["status"] == "active"


def test_events_for_host(make_event):
    published = make_event()
    draft = make_event(publish=False, start_time=datetime(2026, 11, 6, 18, 0))
    make_event(host_id="host-2")
    book_slots([published.slots[3].id], "dj-a")

    hosted = event_service.events_for_host(HOST)

    assert [e["id"] for e in hosted] == [draft.id, published.id]
    assert (hosted[0]["total_slots"], hosted[0]["booked_slots"]) == (0, 0)
    assert (hosted[1]["total_slots"], hosted[1]["booked_slots"]) == (4, 1)
    assert event_service.events_for_host("nobody") == []
