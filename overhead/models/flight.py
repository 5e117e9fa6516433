"""
Flight - an aircraft observed near the user.

Plain dataclass rather than an ORM model: flights only ever live in
the key-value store as JSON documents, so ``to_dict``/``from_dict`` are
the persistence format.
"""

from dataclasses import dataclass, asdict, fields
from typing import Optional

UNKNOWN = 'Unknown'


@dataclass
class Flight:
    """
    Display-ready aircraft snapshot.

    Units are the ones notifications show: feet, knots, degrees.
    ``timestamp`` is the Unix time (seconds) of the last message the
    API received from the aircraft.
    """
    id: str
    flight_number: str = UNKNOWN
    aircraft_type: str = UNKNOWN
    operator: Optional[str] = None
    origin: str = UNKNOWN
    origin_city: str = UNKNOWN
    destination: str = UNKNOWN
    destination_city: str = UNKNOWN
    altitude: int = 0
    heading: float = 0.0
    speed: int = 0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timestamp: int = 0
    is_on_ground: bool = False
    distance_km: Optional[float] = None

    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def has_known_type(self) -> bool:
        return bool(self.aircraft_type) and self.aircraft_type != UNKNOWN

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'Flight':
        """Build from a stored dict, ignoring keys this version doesn't know."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})
