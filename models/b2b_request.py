from datetime import datetime
from models.db import db, new_id
from models.enums import B2BInitiator, B2BStatus, enum_column_type


class B2BRequest(db.Model):
    __tablename__ = "b2b_requests"

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    booking_id = db.Column(db.String(36), db.ForeignKey("slot_bookings.id"), nullable=False, index=True)
    requester_id = db.Column(db.String(64), nullable=False, index=True)
    requestee_id = db.Column(db.String(64), nullable=False, index=True)

    initiated_by = db.Column(enum_column_type(B2BInitiator), nullable=False)
    status = db.Column(enum_column_type(B2BStatus), nullable=False, default=B2BStatus.PENDING)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    booking = db.relationship("SlotBooking")

    def other_party(self, performer_id: str) -> str:
        """The side of this request that is not the booking's performer."""
        if self.requester_id == performer_id:
            return self.requestee_id
        return self.requester_id
