from flask import current_app, g, request
from security.capabilities import Actor, parse_capabilities


def load_current_actor():
    """Identity is resolved upstream; trust the gateway-set headers."""
    user_header = current_app.config.get("AUTH_USER_HEADER", "X-User-Id")
    caps_header = current_app.config.get("AUTH_CAPABILITIES_HEADER", "X-User-Capabilities")

    user_id = (request.headers.get(user_header) or "").strip()
    if not user_id:
        g.actor = None
        return
    g.actor = Actor(user_id=user_id, capabilities=parse_capabilities(request.headers.get(caps_header)))
