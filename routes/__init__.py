from .health import health_bp
from .events import events_bp
from .bookings import bookings_bp
from .b2b import b2b_bp
