from datetime import datetime

from flask import Blueprint, request, jsonify, g

from security.capabilities import require_actor
from services import events as event_service
from services import slot_planner
from services.allocator import book_slots
from services.booking_view import booking_to_dict
from services.errors import SlotUnavailable
from utils.audit import log_event

events_bp = Blueprint("events", __name__, url_prefix="/events")

_TIME_FIELDS = ("start_time", "end_time", "event_date")
_INT_FIELDS = ("slot_duration_minutes", "max_consecutive_slots")
_BOOL_FIELDS = ("allow_consecutive_slots", "allow_b2b")
_EDITABLE_FIELDS = ("title", "description", "status") + _TIME_FIELDS + _INT_FIELDS + _BOOL_FIELDS


def _parse_iso(dt_str: str):
    # Expect ISO format like "2026-01-20T18:00:00"
    return datetime.fromisoformat(dt_str)


def _coerce(data: dict) -> dict:
    """
    Parse a JSON body into typed event fields; raises ValueError on bad input.
    A null for a typed field means "not supplied". Flags must be JSON booleans.
    """
    out = dict(data)
    for name in _TIME_FIELDS + _INT_FIELDS + _BOOL_FIELDS:
        if name in out and out[name] is None:
            del out[name]

    for name in _TIME_FIELDS:
        if name in out:
            out[name] = _parse_iso(out[name])
    for name in _INT_FIELDS:
        if name in out:
            if isinstance(out[name], bool):
                raise ValueError(f"{name} must be a number")
            out[name] = int(out[name])
    for name in _BOOL_FIELDS:
        if name in out and not isinstance(out[name], bool):
            raise ValueError(f"{name} must be true or false")

    if "title" in out and (not isinstance(out["title"], str) or not out["title"].strip()):
        raise ValueError("title must be a non-empty string")
    if out.get("description") is not None and not isinstance(out["description"], str):
        raise ValueError("description must be a string")
    return out


# ---------- HOSTS: manage events ----------
@events_bp.post("")
@require_actor
def create_event():
    data = request.get_json(silent=True) or {}
    if not data.get("title") or not data.get("start_time") or not data.get("end_time"):
        return jsonify(error="bad_request", detail="title, start_time, end_time are required"), 400

    try:
        fields = _coerce({k: data[k] for k in _EDITABLE_FIELDS if k in data and k != "status"})
    except (TypeError, ValueError) as exc:
        return jsonify(error="bad_request", detail=f"{exc}. Use ISO datetimes e.g. 2026-01-20T18:00:00"), 400
    fields["title"] = fields["title"].strip()

    event = event_service.create_event(host_id=g.actor.user_id, **fields)

    log_event("EVENT_CREATE", user_id=g.actor.user_id, entity="event", entity_id=event.id)
    return jsonify(event_service.event_to_dict(event)), 201


@events_bp.get("/hosted")
@require_actor
def hosted_events():
    return jsonify(event_service.events_for_host(g.actor.user_id)), 200


@events_bp.get("")
def list_events():
    return jsonify(event_service.list_bookable_events()), 200


@events_bp.get("/<event_id>")
def get_event(event_id: str):
    return jsonify(event_service.get_event_with_slots(event_id)), 200


@events_bp.patch("/<event_id>")
@require_actor
def update_event(event_id: str):
    data = request.get_json(silent=True) or {}
    try:
        changes = _coerce({k: data[k] for k in _EDITABLE_FIELDS if k in data})
    except (TypeError, ValueError) as exc:
        return jsonify(error="bad_request", detail=str(exc)), 400

    event = event_service.update_event(event_id, g.actor, **changes)

    log_event("EVENT_UPDATE", user_id=g.actor.user_id, entity="event", entity_id=event.id,
              metadata={"fields": sorted(changes)})
    return jsonify(event_service.event_to_dict(event)), 200


@events_bp.delete("/<event_id>")
@require_actor
def delete_event(event_id: str):
    event_service.delete_event(event_id, g.actor)

    log_event("EVENT_DELETE", user_id=g.actor.user_id, entity="event", entity_id=event_id)
    return jsonify(message="Deleted"), 200


@events_bp.post("/<event_id>/publish")
@require_actor
def publish_event(event_id: str):
    event = event_service.publish_event(event_id, g.actor)

    log_event("EVENT_PUBLISH", user_id=g.actor.user_id, entity="event", entity_id=event.id,
              metadata={"slots": len(event.slots)})
    return jsonify(event_service.get_event_with_slots(event.id)), 200


# ---------- PERFORMERS: find and book slots ----------
@events_bp.get("/<event_id>/windows")
def available_windows(event_id: str):
    count = request.args.get("count", default=1, type=int)
    event = event_service.get_event(event_id)

    windows = slot_planner.find_windows(event.slots, count)
    return jsonify([
        {
            "slot_ids": [s.id for s in window],
            "start_time": window[0].start_time.isoformat(),
            "end_time": window[-1].end_time.isoformat(),
        }
        for window in windows
    ]), 200


@events_bp.post("/<event_id>/book")
@require_actor
def book(event_id: str):
    data = request.get_json(silent=True) or {}
    slot_ids = data.get("slot_ids")
    if not isinstance(slot_ids, list) or not slot_ids:
        return jsonify(error="bad_request", detail="slot_ids required"), 400
    if not all(isinstance(s, str) for s in slot_ids):
        return jsonify(error="bad_request", detail="slot_ids must be strings"), 400

    try:
        bookings = book_slots(slot_ids, g.actor.user_id, event_id=event_id)
    except SlotUnavailable:
        log_event("BOOKING_FAIL_UNAVAILABLE", user_id=g.actor.user_id, entity="event", entity_id=event_id,
                  metadata={"slot_ids": slot_ids})
        raise

    log_event("BOOKING_CREATE", user_id=g.actor.user_id, entity="booking_group", entity_id=bookings[0].group_id,
              metadata={"slot_ids": slot_ids})
    return jsonify(
        group_id=bookings[0].group_id,
        bookings=[booking_to_dict(b) for b in bookings],
    ), 201
