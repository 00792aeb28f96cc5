from dataclasses import dataclass, field
from functools import wraps
from flask import g, jsonify

# Capability names granted by the upstream identity gateway
CANCEL_ANY_BOOKING = "bookings:cancel_any"
MANAGE_ANY_EVENT = "events:manage_any"


@dataclass(frozen=True)
class Actor:
    """The acting identity and what it may do beyond its own rows."""
    user_id: str
    capabilities: frozenset = field(default_factory=frozenset)

    def can(self, capability: str) -> bool:
        return capability in self.capabilities

    def owns_or_can(self, owner_id: str, capability: str) -> bool:
        return self.user_id == owner_id or self.can(capability)


def parse_capabilities(raw: str | None) -> frozenset:
    return frozenset(c.strip() for c in (raw or "").split(",") if c.strip())


def require_actor(fn):
    """
    Usage: @require_actor
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "actor", None) is None:
            return jsonify(error="unauthenticated", detail="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
