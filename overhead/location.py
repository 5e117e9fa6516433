"""
Observer location.

Resolution order:
1. USER_LOCATION from configuration
2. IP geolocation (geocoder)
3. Last known location from settings (get_last_known_location only)
"""

import logging
from typing import Optional, Tuple

import geocoder

from overhead.config import config
from overhead.errors import LocationError, StorageError
from overhead.models import Location
from overhead.repositories import SettingsRepository

logger = logging.getLogger(__name__)


class LocationService:
    """Current and last known position of this device."""

    def __init__(
        self,
        settings_repository: Optional[SettingsRepository] = None,
        fixed_location: Optional[Tuple[float, float]] = None,
        use_ip_lookup: bool = True,
    ):
        self.settings_repository = settings_repository or SettingsRepository()
        self.fixed_location = fixed_location if fixed_location is not None else config.user_location
        self.use_ip_lookup = use_ip_lookup

    def get_current_location(self) -> Location:
        """
        Resolve the current position and remember it.

        Raises:
            LocationError if no source produced a position
        """
        if self.fixed_location:
            location = Location(*self.fixed_location)
        elif self.use_ip_lookup:
            location = self._lookup_ip_location()
        else:
            raise LocationError('No location configured and IP lookup disabled')

        try:
            self.settings_repository.update_last_known_location(location)
        except StorageError as e:
            logger.warning(f'Could not persist last known location: {e}')

        return location

    def get_last_known_location(self) -> Optional[Location]:
        try:
            return self.settings_repository.get_settings().last_known_location
        except StorageError as e:
            logger.error(f'Failed to read last known location: {e}')
            return None

    def _lookup_ip_location(self) -> Location:
        try:
            g = geocoder.ip('me')
        except Exception as e:
            raise LocationError('IP geolocation request failed', e) from e

        if not g.ok or not g.latlng:
            raise LocationError('IP geolocation returned no position')

        lat, lon = g.latlng[:2]
        logger.info(f'Auto-detected location: ({lat}, {lon}) ({g.city}, {g.country})')
        return Location(latitude=float(lat), longitude=float(lon))
