"""
User settings repository.
"""

import dataclasses
import logging
from typing import Optional

from overhead.config import config
from overhead.errors import StorageError
from overhead.models import AppSettings, Location
from overhead.storage import StorageService

logger = logging.getLogger(__name__)

SETTINGS_STORAGE_KEY = 'app_settings'


class SettingsRepository:
    """Load and update AppSettings; first read persists the defaults."""

    def __init__(self, storage: Optional[StorageService] = None):
        self.storage = storage or StorageService()

    def save_settings(self, settings: AppSettings) -> None:
        self.storage.store_data(SETTINGS_STORAGE_KEY, settings.to_dict())

    def get_settings(self) -> AppSettings:
        stored = self.storage.get_data(SETTINGS_STORAGE_KEY)
        if stored:
            try:
                return AppSettings.from_dict(stored)
            except (KeyError, TypeError, ValueError) as e:
                raise StorageError('Stored settings are corrupt', e) from e

        defaults = AppSettings(detection_radius_km=config.detection.default_radius_km)
        self.save_settings(defaults)
        logger.info(f'Initialized default settings (radius={defaults.detection_radius_km}km)')
        return defaults

    def update_detection_radius(self, radius_km: float) -> AppSettings:
        if radius_km <= 0:
            raise ValueError(f'Detection radius must be positive, got {radius_km}')
        settings = dataclasses.replace(self.get_settings(), detection_radius_km=float(radius_km))
        self.save_settings(settings)
        return settings

    def update_last_known_location(self, location: Location) -> AppSettings:
        settings = dataclasses.replace(self.get_settings(), last_known_location=location)
        self.save_settings(settings)
        return settings
