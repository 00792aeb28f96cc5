from datetime import datetime

import pytest

from app import create_app
from config import TestConfig
from models import db
from security.capabilities import Actor
from services.events import create_event, publish_event

HOST = "host-1"
EVENT_START = datetime(2026, 11, 6, 20, 0)
EVENT_END = datetime(2026, 11, 6, 22, 0)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def host():
    return Actor(user_id=HOST)


@pytest.fixture
def make_event(app):
    """Create (and by default publish) an event: 20:00-22:00, four 30 minute slots."""
    def _make(publish=True, **overrides):
        fields = dict(
            host_id=HOST,
            title="Friday Open Decks",
            start_time=EVENT_START,
            end_time=EVENT_END,
            slot_duration_minutes=30,
            allow_consecutive_slots=True,
            max_consecutive_slots=2,
            allow_b2b=True,
        )
        fields.update(overrides)
        event = create_event(**fields)
        if publish:
            publish_event(event.id, Actor(user_id=fields["host_id"]))
        return event
    return _make


def as_user(user_id, capabilities=""):
    headers = {"X-User-Id": user_id}
    if capabilities:
        headers["X-User-Capabilities"] = capabilities
    return headers
