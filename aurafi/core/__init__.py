"""aurafi.core

Core primitives.

If a module needs to exist, it should probably depend only on this package.
"""

from .config import Config
from .database import Database
from .events import EventType
from .exceptions import AuraFiError
from .fixed_point import INFINITE_HEALTH, WAD
from .models import Event
from .time import parse_dt, utc_now

__all__ = [
    "AuraFiError",
    "Config",
    "Database",
    "Event",
    "EventType",
    "INFINITE_HEALTH",
    "WAD",
    "utc_now",
    "parse_dt",
]
