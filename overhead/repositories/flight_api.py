"""
Flight API repository - nearby aircraft with caching and radius filtering.

Pipeline for one lookup:
1. Cache: return the cached result for this (rounded) location if fresh
2. Fetch: query OpenSky with the bounding box around the circle
3. Map: StateVector -> Flight, enriched with aircraft reference data
4. Filter: trim box corners with the Haversine distance
5. Cache: store the filtered list for a minute
"""

import logging
from typing import List, Optional

from overhead.cache import TTLCache
from overhead.config import config
from overhead.errors import ApiError
from overhead.geo import filter_by_radius
from overhead.ingestion import AircraftLookup, BoundingBox, FlightMapper, OpenSkyClient
from overhead.models import Flight

logger = logging.getLogger(__name__)


def nearby_cache_key(latitude: float, longitude: float, radius_km: float) -> str:
    # Round to 2 decimal places (~1 km) so small GPS jitter reuses the entry
    return f'nearby_aircraft_{round(latitude, 2):g}_{round(longitude, 2):g}_{radius_km:g}'


class FlightApiRepository:
    """Aircraft near a point, or a single aircraft by ICAO24."""

    def __init__(
        self,
        client: Optional[OpenSkyClient] = None,
        cache: Optional[TTLCache] = None,
        aircraft_lookup: Optional[AircraftLookup] = None,
    ):
        self.client = client or OpenSkyClient.from_config()
        self.cache = cache or TTLCache()
        self.aircraft_lookup = aircraft_lookup or AircraftLookup()

        self.nearby_ttl = config.cache.nearby_aircraft_ttl_seconds
        self.details_ttl = config.cache.aircraft_details_ttl_seconds

    def get_nearby_aircraft(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
    ) -> List[Flight]:
        """
        Get aircraft within radius_km of a point.

        Raises:
            ApiError if the API call or processing fails
        """
        cache_key = nearby_cache_key(latitude, longitude, radius_km)

        cached = self.cache.get_cached_data(cache_key)
        if cached is not None:
            flights = [Flight.from_dict(item) for item in cached]
            logger.info(f'Retrieved {len(flights)} nearby aircraft from cache')
            return flights

        try:
            bbox = BoundingBox.from_center_radius(latitude, longitude, radius_km)
            states = self.client.get_states_in_area(bbox)

            flights = [self._to_flight(state) for state in states]
            flights = filter_by_radius(flights, latitude, longitude, radius_km)
        except ApiError:
            raise
        except Exception as e:
            logger.error(f'Error getting nearby aircraft at ({latitude}, {longitude}) r={radius_km}: {e}')
            raise ApiError('Failed to get nearby aircraft', e) from e

        self.cache.cache_data(cache_key, [f.to_dict() for f in flights], self.nearby_ttl)

        logger.info(f'Retrieved {len(flights)} nearby aircraft from API')
        return flights

    def get_aircraft_by_id(self, icao24: str) -> Optional[Flight]:
        """Get a single aircraft by ICAO24, or None if OpenSky doesn't see it."""
        icao24 = icao24.lower()
        cache_key = f'aircraft_{icao24}'

        cached = self.cache.get_cached_data(cache_key)
        if cached is not None:
            logger.info(f'Retrieved aircraft {icao24} from cache')
            return Flight.from_dict(cached)

        try:
            state = self.client.get_state_by_icao(icao24)
            if state is None:
                return None
            flight = self._to_flight(state)
        except ApiError:
            raise
        except Exception as e:
            logger.error(f'Error getting aircraft {icao24}: {e}')
            raise ApiError(f'Failed to get aircraft with ID: {icao24}', e) from e

        self.cache.cache_data(cache_key, flight.to_dict(), self.details_ttl)

        logger.info(f'Retrieved aircraft {icao24} from API')
        return flight

    def clear_cache(self) -> None:
        self.cache.clear_cache()
        logger.info('Cleared flight API cache')

    def _to_flight(self, state) -> Flight:
        info = self.aircraft_lookup.get(state.icao24, state.callsign)
        return FlightMapper.to_flight(state, info)
