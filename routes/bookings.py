from flask import Blueprint, request, jsonify, g

from security.capabilities import require_actor
from services import b2b
from services.allocator import cancel_booking, cancel_booking_group, get_booking
from services.booking_view import booking_detail, booking_to_dict, bookings_for_performer, request_to_dict
from models.enums import B2BInitiator
from utils.audit import log_event

bookings_bp = Blueprint("bookings", __name__)


# ---------- PERFORMERS: view my bookings ----------
@bookings_bp.get("/bookings/me")
@require_actor
def my_bookings():
    return jsonify(bookings_for_performer(g.actor.user_id)), 200


@bookings_bp.get("/bookings/<booking_id>")
@require_actor
def get_booking_detail(booking_id: str):
    return jsonify(booking_detail(booking_id)), 200


# ---------- PERFORMERS: cancel ----------
@bookings_bp.post("/bookings/<booking_id>/cancel")
@require_actor
def cancel(booking_id: str):
    booking = cancel_booking(booking_id, actor=g.actor)

    log_event("BOOKING_CANCEL", user_id=g.actor.user_id, entity="booking", entity_id=booking.id)
    return jsonify(booking_to_dict(booking)), 200


@bookings_bp.post("/booking-groups/<group_id>/cancel")
@require_actor
def cancel_group(group_id: str):
    bookings = cancel_booking_group(group_id, actor=g.actor)

    log_event("BOOKING_GROUP_CANCEL", user_id=g.actor.user_id, entity="booking_group", entity_id=group_id)
    return jsonify([booking_to_dict(b) for b in bookings]), 200


# ---------- B2B: invite or ask to join ----------
@bookings_bp.post("/bookings/<booking_id>/b2b")
@require_actor
def create_b2b_request(booking_id: str):
    data = request.get_json(silent=True) or {}
    booking = get_booking(booking_id)

    # The performer invites; anyone else asks the performer
    if booking.performer_id == g.actor.user_id:
        target_user_id = (data.get("target_user_id") or "").strip()
        if not target_user_id:
            return jsonify(error="bad_request", detail="target_user_id required"), 400
        initiated_by = B2BInitiator.BOOKER
    else:
        target_user_id = (data.get("target_user_id") or booking.performer_id).strip()
        initiated_by = B2BInitiator.REQUESTER

    req = b2b.create_request(
        booking_id=booking.id,
        requester_id=g.actor.user_id,
        requestee_id=target_user_id,
        initiated_by=initiated_by,
    )

    log_event("B2B_REQUEST_CREATE", user_id=g.actor.user_id, entity="b2b_request", entity_id=req.id,
              metadata={"booking_id": booking.id, "initiated_by": initiated_by.value})
    return jsonify(request_to_dict(req)), 201
