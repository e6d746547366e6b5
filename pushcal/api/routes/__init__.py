"""Route modules for the pushcal server."""

from .calendar_routes import register_calendar_routes
from .health_routes import register_health_routes
from .push_routes import register_push_routes
from .pusher_routes import register_pusher_routes

__all__ = [
    "register_calendar_routes",
    "register_health_routes",
    "register_push_routes",
    "register_pusher_routes",
]
