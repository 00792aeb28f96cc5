import logging

from flask import Flask, jsonify, request
from config import Config
from routes import health_bp, events_bp, bookings_bp, b2b_bp

from models import db
from flask_migrate import Migrate
from services.errors import BookingError
from utils.auth_context import load_current_actor

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(events_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(b2b_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_actor():
        load_current_actor()

    @app.errorhandler(BookingError)
    def _booking_error(exc: BookingError):
        logger.warning(
            "Booking error: %s (status=%d, path=%s)",
            exc.detail,
            exc.status_code,
            request.path,
        )
        return jsonify(exc.to_dict()), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        # API only; nothing here should ever be framed or render content
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from security.capabilities import MANAGE_ANY_EVENT, Actor
from services.events import publish_event
from utils.audit import log_event

def register_cli(app):
    @app.cli.command("publish-event")
    @click.argument("event_id")
    def publish_event_command(event_id):
        """Publish a draft event and generate its slots (operator bootstrap)."""
        operator = Actor(user_id="cli", capabilities=frozenset({MANAGE_ANY_EVENT}))
        try:
            event = publish_event(event_id, operator)
        except BookingError as exc:
            raise click.ClickException(exc.detail)

        log_event("EVENT_PUBLISH", entity="event", entity_id=event.id, metadata={"slots": len(event.slots)})
        click.echo(f"{event.title} published with {len(event.slots)} slots")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
