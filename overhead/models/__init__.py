"""
Data models for Flight Overhead.

ORM tables are deliberately flat: a JSON key-value store and a static
aircraft reference table. Domain objects (Flight, AppSettings) are
dataclasses serialized into the key-value store.
"""

from overhead.models.base import Base, engine, SessionLocal, init_db, get_session
from overhead.models.aircraft import Aircraft
from overhead.models.kv import KeyValue
from overhead.models.flight import Flight, UNKNOWN
from overhead.models.settings import AppSettings, Location, DEFAULT_DETECTION_RADIUS_KM

__all__ = [
    'Base',
    'engine',
    'SessionLocal',
    'init_db',
    'get_session',
    'Aircraft',
    'KeyValue',
    'Flight',
    'UNKNOWN',
    'AppSettings',
    'Location',
    'DEFAULT_DETECTION_RADIUS_KM',
]
