from datetime import datetime, timedelta

import pytest

from services import b2b
from services.allocator import book_slots, cancel_booking
from services.booking_view import booking_detail, bookings_for_performer
from services.errors import NotFound


def test_one_claim_is_one_summary(make_event):
    event = make_event()
    bookings = book_slots([event.slots[0].id, event.slots[1].id], "dj-a")

    [summary] = bookings_for_performer("dj-a")

    assert summary["group_id"] == bookings[0].group_id
    assert summary["event_title"] == "Friday Open Decks"
    assert summary["booking_ids"] == [b.id for b in bookings]
    assert summary["start_time"] == "2026-11-06T20:00:00"
    assert summary["end_time"] == "2026-11-06T21:00:00"
    assert summary["status"] == "confirmed"
    assert summary["partners"] == []
    assert summary["has_pending_b2b"] is False


def test_separate_claims_stay_separate(make_event):
    event = make_event()
    book_slots([event.slots[2].id], "dj-a")
    book_slots([event.slots[1].id], "dj-a")
    book_slots([event.slots[0].id], "dj-b")

    summaries = bookings_for_performer("dj-a")

    assert [s["start_time"] for s in summaries] == ["2026-11-06T20:30:00", "2026-11-06T21:00:00"]
    assert bookings_for_performer("nobody") == []


def test_partial_cancel_splits_the_claim(make_event):
    event = make_event()
    first, second = book_slots([event.slots[0].id, event.slots[1].id], "dj-a")
    cancel_booking(second.id)

    summaries = bookings_for_performer("dj-a")

    assert [(s["booking_ids"], s["status"]) for s in summaries] == [
        ([first.id], "confirmed"),
        ([second.id], "cancelled"),
    ]
    assert {s["group_id"] for s in summaries} == {first.group_id}


def test_cancelled_runs_expire_from_the_list(app, make_event):
    event = make_event()
    booking = book_slots([event.slots[0].id], "dj-a")[0]
    cancel_booking(booking.id)

    assert len(bookings_for_performer("dj-a", now=datetime.utcnow() + timedelta(minutes=59))) == 1
    assert bookings_for_performer("dj-a", now=datetime.utcnow() + timedelta(minutes=61)) == []

    app.config["CANCELLED_BOOKING_VISIBILITY_MINUTES"] = 120
    assert len(bookings_for_performer("dj-a", now=datetime.utcnow() + timedelta(minutes=61))) == 1


def test_partners_and_pending_flags(make_event):
    event = make_event()
    first, second = book_slots([event.slots[0].id, event.slots[1].id], "dj-a")
    req = b2b.create_request(first.id, "dj-a", "dj-b", "booker")
    b2b.respond(req.id, "dj-b", "accept")
    b2b.create_request(second.id, "dj-c", "dj-a", "requester")

    [summary] = bookings_for_performer("dj-a")

    assert summary["partners"] == ["dj-b"]
    assert summary["has_pending_b2b"] is True


def test_booking_detail(make_event):
    event = make_event()
    booking = book_slots([event.slots[1].id], "dj-a")[0]
    req = b2b.create_request(booking.id, "dj-a", "dj-b", "booker")
    b2b.respond(req.id, "dj-b", "accept")
    pending = b2b.create_request(booking.id, "dj-c", "dj-a", "requester")

    detail = booking_detail(booking.id)

    assert detail["booking"]["status"] == "confirmed"
    assert detail["event_id"] == event.id
    assert detail["slot_index"] == 1
    assert detail["slot_start_time"] == "2026-11-06T20:30:00"
    assert detail["allow_b2b"] is True
    assert detail["partners"] == ["dj-b"]
    assert [r["id"] for r in detail["pending_requests"]] == [pending.id]


def test_booking_detail_unknown(app):
    with pytest.raises(NotFound):
        booking_detail("missing")
