from datetime import datetime
from models.db import db, new_id
from models.enums import SlotStatus, enum_column_type


class TimeSlot(db.Model):
    __tablename__ = "time_slots"

    id = db.Column(db.String(36), primary_key=True, default=new_id)

    event_id = db.Column(db.String(36), db.ForeignKey("events.id"), nullable=False, index=True)
    slot_index = db.Column(db.Integer, nullable=False)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)

    status = db.Column(enum_column_type(SlotStatus), nullable=False, default=SlotStatus.AVAILABLE)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    event = db.relationship("Event", back_populates="slots")

    __table_args__ = (
        # One row per position in the event's plan
        db.UniqueConstraint("event_id", "slot_index", name="uq_time_slots_event_index"),
    )
