"""Back-to-back (B2B) partnership requests on a confirmed booking.

    pending -> accepted | declined | cancelled
    accepted -> cancelled   (leave, or the booking is cancelled)

Mutations on one booking's partnership are serialized by locking the booking
row first (``SELECT ... FOR UPDATE`` where the backend supports it); status
changes themselves are conditional updates so a stale read never overwrites
a concurrent transition.
"""

from datetime import datetime

from flask import current_app
from sqlalchemy import select, update

from models import db
from models.db import atomic
from models.booking import SlotBooking
from models.b2b_request import B2BRequest
from models.enums import B2BDecision, B2BInitiator, B2BStatus, BookingStatus
from services.errors import (
    AlreadyPartner,
    B2BNotAllowed,
    BookingNotConfirmed,
    DuplicatePending,
    InvalidDecision,
    InvalidInitiator,
    NotAccepted,
    NotFound,
    NotPending,
    PartnershipFull,
    Unauthorized,
)


def _max_partners() -> int:
    return current_app.config.get("MAX_B2B_PARTNERS", 2)


def _lock_booking(booking_id: str) -> SlotBooking:
    booking = db.session.execute(
        select(SlotBooking)
        .where(SlotBooking.id == booking_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if booking is None:
        raise NotFound("Booking not found", booking_id=booking_id)
    return booking


def get_request(request_id: str) -> B2BRequest:
    request = db.session.get(B2BRequest, request_id)
    if request is None:
        raise NotFound("Request not found", request_id=request_id)
    return request


def _lock_request(request_id: str) -> B2BRequest:
    """Lock the owning booking, then re-read the request under that lock."""
    booking_id = get_request(request_id).booking_id
    _lock_booking(booking_id)
    return db.session.execute(
        select(B2BRequest)
        .where(B2BRequest.id == request_id)
        .execution_options(populate_existing=True)
    ).scalar_one()


def _requests_on(booking_id: str, status: B2BStatus) -> list[B2BRequest]:
    return B2BRequest.query.filter_by(booking_id=booking_id, status=status).all()


def _transition(request: B2BRequest, from_status: B2BStatus, to_status: B2BStatus, error_cls):
    result = db.session.execute(
        update(B2BRequest)
        .where(B2BRequest.id == request.id, B2BRequest.status == from_status)
        .values(status=to_status, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise error_cls(request_id=request.id)


def create_request(booking_id: str, requester_id: str, requestee_id: str, initiated_by) -> B2BRequest:
    """
    Two directions share one row shape:
    - booker: the performer (requester) invites someone (requestee)
    - requester: someone (requester) asks the performer (requestee) to join
    """
    try:
        initiated_by = B2BInitiator(initiated_by)
    except ValueError:
        raise InvalidInitiator("initiated_by must be 'booker' or 'requester'")

    with atomic():
        booking = _lock_booking(booking_id)

        if not booking.slot.event.allow_b2b:
            raise B2BNotAllowed()

        if booking.status != BookingStatus.CONFIRMED:
            raise BookingNotConfirmed("Cannot create B2B request for a cancelled booking")

        if requester_id == requestee_id:
            raise InvalidInitiator("Requester and requestee must be different users")
        if initiated_by == B2BInitiator.BOOKER and requester_id != booking.performer_id:
            raise InvalidInitiator("Only the original booker can invite for B2B")
        if initiated_by == B2BInitiator.REQUESTER and requestee_id != booking.performer_id:
            raise InvalidInitiator("B2B requests must be sent to the slot booker")

        accepted = _requests_on(booking.id, B2BStatus.ACCEPTED)
        if len(accepted) >= _max_partners():
            raise PartnershipFull()

        target = requestee_id if initiated_by == B2BInitiator.BOOKER else requester_id
        if any(r.other_party(booking.performer_id) == target for r in accepted):
            raise AlreadyPartner()

        pending = _requests_on(booking.id, B2BStatus.PENDING)
        if any(target in (r.requester_id, r.requestee_id) for r in pending):
            raise DuplicatePending()

        now = datetime.utcnow()
        request = B2BRequest(
            booking_id=booking.id,
            requester_id=requester_id,
            requestee_id=requestee_id,
            initiated_by=initiated_by,
            status=B2BStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        db.session.add(request)

    return request


def respond(request_id: str, acting_user_id: str, decision) -> B2BRequest:
    try:
        decision = B2BDecision(decision)
    except ValueError:
        raise InvalidDecision()

    with atomic():
        request = _lock_request(request_id)

        if request.status != B2BStatus.PENDING:
            raise NotPending()
        if acting_user_id != request.requestee_id:
            raise Unauthorized("Only the requestee can respond to this B2B request")

        if decision == B2BDecision.DECLINE:
            _transition(request, B2BStatus.PENDING, B2BStatus.DECLINED, NotPending)
        else:
            # a second pending request may have been accepted since this one was created
            if request.booking.status != BookingStatus.CONFIRMED:
                raise BookingNotConfirmed()
            if len(_requests_on(request.booking_id, B2BStatus.ACCEPTED)) >= _max_partners():
                raise PartnershipFull()
            _transition(request, B2BStatus.PENDING, B2BStatus.ACCEPTED, NotPending)

    return request


def cancel(request_id: str, acting_user_id: str) -> B2BRequest:
    with atomic():
        request = _lock_request(request_id)

        if request.status != B2BStatus.PENDING:
            raise NotPending()
        if acting_user_id != request.requester_id:
            raise Unauthorized("Only the requester can cancel this B2B request")

        _transition(request, B2BStatus.PENDING, B2BStatus.CANCELLED, NotPending)

    return request


def leave(request_id: str, acting_user_id: str) -> B2BRequest:
    """Either party ends an accepted partnership; the booking is untouched."""
    with atomic():
        request = _lock_request(request_id)

        if request.status != B2BStatus.ACCEPTED:
            raise NotAccepted()
        if acting_user_id not in (request.requester_id, request.requestee_id):
            raise Unauthorized("Only participants can leave this B2B partnership")

        _transition(request, B2BStatus.ACCEPTED, B2BStatus.CANCELLED, NotAccepted)

    return request


def partners_for_booking(booking_id: str) -> set[str]:
    booking = db.session.get(SlotBooking, booking_id)
    if booking is None:
        raise NotFound("Booking not found", booking_id=booking_id)
    if booking.status != BookingStatus.CONFIRMED:
        return set()
    return {
        r.other_party(booking.performer_id)
        for r in _requests_on(booking.id, B2BStatus.ACCEPTED)
    }


def pending_requests_for_user(user_id: str) -> list[B2BRequest]:
    """Requests waiting on this user's answer."""
    return (
        B2BRequest.query
        .filter_by(requestee_id=user_id, status=B2BStatus.PENDING)
        .order_by(B2BRequest.created_at.asc())
        .all()
    )
