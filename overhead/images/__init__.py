"""
Aircraft images for notifications: type database, download cache, manager.
"""

from overhead.images.type_database import (
    AircraftCategory,
    AircraftType,
    AircraftTypeDatabase,
)
from overhead.images.service import AircraftImageService, legacy_image_id
from overhead.images.manager import AircraftImageManager

__all__ = [
    'AircraftCategory',
    'AircraftType',
    'AircraftTypeDatabase',
    'AircraftImageService',
    'legacy_image_id',
    'AircraftImageManager',
]
