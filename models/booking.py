from datetime import datetime
from models.db import db, new_id
from models.enums import BookingStatus, enum_column_type


class BookingGroup(db.Model):
    """The bookings created together by one claim of consecutive slots."""
    __tablename__ = "booking_groups"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    event_id = db.Column(db.String(36), db.ForeignKey("events.id"), nullable=False, index=True)
    performer_id = db.Column(db.String(64), nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    bookings = db.relationship("SlotBooking", back_populates="group")


class SlotBooking(db.Model):
    __tablename__ = "slot_bookings"

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    group_id = db.Column(db.String(36), db.ForeignKey("booking_groups.id"), nullable=False, index=True)
    slot_id = db.Column(db.String(36), db.ForeignKey("time_slots.id"), nullable=False, index=True)
    performer_id = db.Column(db.String(64), nullable=False, index=True)

    status = db.Column(enum_column_type(BookingStatus), nullable=False, default=BookingStatus.CONFIRMED)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    group = db.relationship("BookingGroup", back_populates="bookings")
    slot = db.relationship("TimeSlot")

    __table_args__ = (
        # Hard business-rule: only one confirmed booking per slot (prevents double booking).
        # Cancelled rows stay for history, so the index is partial.
        db.Index(
            "uq_slot_bookings_confirmed_slot",
            "slot_id",
            unique=True,
            sqlite_where=db.text("status = 'confirmed'"),
            postgresql_where=db.text("status = 'confirmed'"),
        ),
    )
