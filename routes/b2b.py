from flask import Blueprint, request, jsonify, g

from security.capabilities import require_actor
from services import b2b
from services.booking_view import request_to_dict
from utils.audit import log_event

b2b_bp = Blueprint("b2b", __name__, url_prefix="/b2b")


@b2b_bp.get("/pending")
@require_actor
def pending():
    return jsonify([request_to_dict(r) for r in b2b.pending_requests_for_user(g.actor.user_id)]), 200


@b2b_bp.post("/<request_id>/respond")
@require_actor
def respond(request_id: str):
    data = request.get_json(silent=True) or {}
    decision = (data.get("decision") or "").strip().lower()

    req = b2b.respond(request_id, g.actor.user_id, decision)

    log_event(f"B2B_REQUEST_{decision.upper()}", user_id=g.actor.user_id, entity="b2b_request", entity_id=req.id)
    return jsonify(request_to_dict(req)), 200


@b2b_bp.post("/<request_id>/cancel")
@require_actor
def cancel(request_id: str):
    req = b2b.cancel(request_id, g.actor.user_id)

    log_event("B2B_REQUEST_CANCEL", user_id=g.actor.user_id, entity="b2b_request", entity_id=req.id)
    return jsonify(request_to_dict(req)), 200


@b2b_bp.post("/<request_id>/leave")
@require_actor
def leave(request_id: str):
    req = b2b.leave(request_id, g.actor.user_id)

    log_event("B2B_PARTNERSHIP_LEAVE", user_id=g.actor.user_id, entity="b2b_request", entity_id=req.id)
    return jsonify(request_to_dict(req)), 200
