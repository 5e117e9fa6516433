"""
User settings stored in the key-value store.
"""

from dataclasses import dataclass
from typing import Optional

DEFAULT_DETECTION_RADIUS_KM = 5.0


@dataclass(frozen=True)
class Location:
    """WGS84 position in decimal degrees."""
    latitude: float
    longitude: float

    def to_dict(self) -> dict:
        return {'latitude': self.latitude, 'longitude': self.longitude}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional['Location']:
        if not data:
            return None
        return cls(latitude=float(data['latitude']), longitude=float(data['longitude']))


@dataclass(frozen=True)
class AppSettings:
    """Detection settings the user can change."""
    detection_radius_km: float = DEFAULT_DETECTION_RADIUS_KM
    last_known_location: Optional[Location] = None

    def to_dict(self) -> dict:
        return {
            'detection_radius_km': self.detection_radius_km,
            'last_known_location': (
                self.last_known_location.to_dict() if self.last_known_location else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AppSettings':
        return cls(
            detection_radius_km=float(
                data.get('detection_radius_km', DEFAULT_DETECTION_RADIUS_KM)
            ),
            last_known_location=Location.from_dict(data.get('last_known_location')),
        )
