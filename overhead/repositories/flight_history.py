"""
Detection history - flights the user has been notified about.
"""

import logging
from typing import Iterable, List, Optional

from overhead.config import config
from overhead.errors import StorageError
from overhead.models import Flight
from overhead.storage import StorageService

logger = logging.getLogger(__name__)

FLIGHTS_STORAGE_KEY = 'flights'


class FlightRepository:
    """
    Flight history stored as one JSON list.

    Newest entries are at the end. The list is capped at ``limit``
    entries; the oldest are dropped first.
    """

    def __init__(self, storage: Optional[StorageService] = None, limit: Optional[int] = None):
        self.storage = storage or StorageService()
        self.limit = limit or config.detection.history_limit

    def save_flights(self, flights: Iterable[Flight]) -> None:
        """Replace the whole history."""
        flights = list(flights)[-self.limit:]
        self.storage.store_data(FLIGHTS_STORAGE_KEY, [f.to_dict() for f in flights])

    def add_flight(self, flight: Flight) -> None:
        self.add_flights([flight])

    def add_flights(self, flights: Iterable[Flight]) -> None:
        """Append to the history."""
        flights = list(flights)
        if not flights:
            return
        self.save_flights(self.get_all_flights() + flights)
        logger.debug(f'Added {len(flights)} flights to history')

    def get_flight_by_id(self, flight_id: str) -> Optional[Flight]:
        """Most recent history entry for an aircraft."""
        for flight in reversed(self.get_all_flights()):
            if flight.id == flight_id:
                return flight
        return None

    def get_all_flights(self) -> List[Flight]:
        stored = self.storage.get_data(FLIGHTS_STORAGE_KEY) or []
        try:
            return [Flight.from_dict(item) for item in stored]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError('Stored flight history is corrupt', e) from e

    def delete_all_flights(self) -> None:
        self.storage.remove_data(FLIGHTS_STORAGE_KEY)

    def get_flights_by_date_range(self, start: float, end: float) -> List[Flight]:
        """Flights whose timestamp falls in [start, end] (Unix seconds)."""
        return [f for f in self.get_all_flights() if start <= f.timestamp <= end]
