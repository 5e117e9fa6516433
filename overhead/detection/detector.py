"""
Overhead flight detector - which aircraft are new since the last poll.

A flight is "new" if its ICAO24 id was not in the previous poll's
result. The first poll treats everything as new. After each poll the
full current result (not just the new ones) becomes the baseline, so
an aircraft that stays in range is reported once, and one that leaves
and comes back is reported again.
"""

import logging
import time
from typing import Iterable, List, Optional

from overhead.errors import FlightDetectionError
from overhead.models import Flight, Location
from overhead.repositories import FlightApiRepository

logger = logging.getLogger(__name__)


def identify_new_flights(current: Iterable[Flight], previous: Iterable[Flight]) -> List[Flight]:
    """Flights in current whose id is not in previous, in current's order."""
    previous_ids = {f.id for f in previous}
    return [f for f in current if f.id not in previous_ids]


class FlightDetector:
    """Stateful poll-to-poll deduplication over FlightApiRepository."""

    def __init__(self, flight_api_repository: FlightApiRepository):
        self.flight_api_repository = flight_api_repository
        self._last_detected: List[Flight] = []
        self.last_detection_time: Optional[float] = None

    def detect_overhead_flights(self, location: Location, radius_km: float) -> List[Flight]:
        """
        Poll for aircraft in range and return the newly seen ones.

        Raises:
            FlightDetectionError wrapping any repository failure
        """
        try:
            nearby = self.flight_api_repository.get_nearby_aircraft(
                location.latitude,
                location.longitude,
                radius_km,
            )
        except Exception as e:
            logger.error(f'Error detecting overhead flights at {location} r={radius_km}km: {e}')
            raise FlightDetectionError('Failed to detect overhead flights', e) from e

        new_detections = identify_new_flights(nearby, self._last_detected)

        self._last_detected = list(nearby)
        self.last_detection_time = time.time()

        logger.info(f'Detected {len(nearby)} nearby aircraft, {len(new_detections)} new')
        for flight in new_detections:
            logger.debug(
                f'New: {flight.flight_number} ({flight.id}) {flight.aircraft_type} '
                f'{flight.altitude}ft {flight.distance_km}km'
            )

        return new_detections

    def get_last_detected_flights(self) -> List[Flight]:
        return list(self._last_detected)

    def reset(self) -> None:
        """Forget the baseline; the next poll reports everything as new."""
        self._last_detected = []
        self.last_detection_time = None
