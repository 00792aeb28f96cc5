from datetime import datetime
from models.db import db, new_id
from models.enums import EventStatus, enum_column_type


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    host_id = db.Column(db.String(64), nullable=False, index=True)

    title = db.Column(db.String(160), nullable=False)
    description = db.Column(db.Text, nullable=True)

    slot_duration_minutes = db.Column(db.Integer, nullable=False, default=20)
    allow_consecutive_slots = db.Column(db.Boolean, nullable=False, default=False)
    max_consecutive_slots = db.Column(db.Integer, nullable=False, default=1)
    allow_b2b = db.Column(db.Boolean, nullable=False, default=True)

    event_date = db.Column(db.DateTime, nullable=False)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)

    status = db.Column(enum_column_type(EventStatus), nullable=False, default=EventStatus.DRAFT)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    slots = db.relationship(
        "TimeSlot",
        back_populates="event",
        order_by="TimeSlot.slot_index",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.CheckConstraint("max_consecutive_slots >= 1", name="ck_events_max_consecutive_positive"),
    )
