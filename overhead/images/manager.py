"""
Aircraft image manager - flight-level access to AircraftImageService.
"""

import logging
from typing import Iterable, Optional

from overhead.images.service import AircraftImageService
from overhead.models import Flight

logger = logging.getLogger(__name__)


class AircraftImageManager:
    """Images for flights; unknown aircraft types have none."""

    def __init__(self, image_service: Optional[AircraftImageService] = None):
        self.image_service = image_service or AircraftImageService()

    def get_image_for_flight(self, flight: Flight) -> Optional[str]:
        if not flight.has_known_type:
            return None

        try:
            return self.image_service.get_image_for_aircraft_type(flight.aircraft_type)
        except Exception as e:
            logger.error(f'Error getting image for flight {flight.id}: {e}')
            return None

    def prefetch_images_for_flights(self, flights: Iterable[Flight]) -> None:
        aircraft_types = [f.aircraft_type for f in flights if f.has_known_type]
        if not aircraft_types:
            return

        try:
            self.image_service.prefetch_images_for_types(aircraft_types)
        except Exception as e:
            logger.error(f'Error prefetching images for flights: {e}')

    def clear_image_cache(self) -> None:
        self.image_service.clear_image_cache()
