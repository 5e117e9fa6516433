"""
Repositories - domain-level access to the API, history and settings.
"""

from overhead.repositories.flight_api import FlightApiRepository
from overhead.repositories.flight_history import FlightRepository
from overhead.repositories.settings import SettingsRepository

__all__ = ['FlightApiRepository', 'FlightRepository', 'SettingsRepository']
