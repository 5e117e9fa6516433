"""
Flight Overhead configuration.

Every tunable is read from the environment (or a .env file) once, at
import time, into frozen dataclasses. Import the `config` singleton.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()


def _parse_location(value: str) -> Optional[Tuple[float, float]]:
    """'40.7,-74.0' -> (40.7, -74.0); None when empty or malformed."""
    if not value:
        return None
    try:
        lat, lon = value.split(',')
        return (float(lat.strip()), float(lon.strip()))
    except (ValueError, AttributeError):
        return None


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class OpenSkyConfig:
    """OpenSky credentials are optional; anonymous access is slower."""
    username: Optional[str] = os.getenv('OPENSKY_USERNAME') or None
    password: Optional[str] = os.getenv('OPENSKY_PASSWORD') or None
    base_url: str = 'https://opensky-network.org/api'
    timeout_seconds: int = 15


@dataclass(frozen=True)
class DatabaseConfig:
    """SQLite database holding the kv store and aircraft table."""
    url: str = os.getenv('DATABASE_URL', 'sqlite:///overhead.db')

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith('sqlite')

    @property
    def is_memory(self) -> bool:
        return self.url in ('sqlite://', 'sqlite:///:memory:')


@dataclass(frozen=True)
class DetectionConfig:
    """Flight detection settings."""
    default_radius_km: float = float(os.getenv('DETECTION_RADIUS_KM', '5.0'))
    # 15 minutes is the shortest interval mobile background fetch allows
    poll_interval_minutes: float = float(os.getenv('POLL_INTERVAL_MINUTES', '15'))
    history_limit: int = 500


@dataclass(frozen=True)
class CacheConfig:
    """Key-value cache settings."""
    key_prefix: str = '@FlightOverhead_Cache_'
    registry_key: str = '@FlightOverhead_CacheKeys'
    nearby_aircraft_ttl_seconds: int = 60
    aircraft_details_ttl_seconds: int = 5 * 60
    image_path_ttl_seconds: int = 7 * 24 * 3600
    image_miss_ttl_seconds: int = 30 * 60


@dataclass(frozen=True)
class NotificationConfig:
    """Notification throttling and delivery."""
    throttle_seconds: float = float(os.getenv('NOTIFICATION_THROTTLE_SECONDS', '30'))
    max_per_batch: int = int(os.getenv('MAX_NOTIFICATIONS_PER_BATCH', '3'))
    rich_notifications: bool = _parse_bool(os.getenv('RICH_NOTIFICATIONS', 'true'))
    webhook_url: Optional[str] = os.getenv('NOTIFY_WEBHOOK_URL') or None

    # Dedup window: base + up to 3 x altitude bonus
    base_duration_seconds: int = 60
    altitude_bonus_seconds: int = 30


@dataclass(frozen=True)
class ImageConfig:
    """Aircraft image cache settings."""
    cache_dir: Path = Path(os.getenv('IMAGE_CACHE_DIR', '~/.cache/overhead/aircraft-images')).expanduser()
    base_url: str = os.getenv('IMAGE_BASE_URL', 'https://aircraft-images.example.com')
    download_timeout_seconds: int = 15


@dataclass(frozen=True)
class AppConfig:
    """Top-level configuration, one section per concern."""
    opensky: OpenSkyConfig
    database: DatabaseConfig
    detection: DetectionConfig
    cache: CacheConfig
    notifications: NotificationConfig
    images: ImageConfig

    # User location (None = auto-detect via IP)
    user_location: Optional[Tuple[float, float]]

    debug: bool


def load_config() -> AppConfig:
    """Build the configuration from the current environment."""
    return AppConfig(
        opensky=OpenSkyConfig(),
        database=DatabaseConfig(),
        detection=DetectionConfig(),
        cache=CacheConfig(),
        notifications=NotificationConfig(),
        images=ImageConfig(),
        user_location=_parse_location(os.getenv('USER_LOCATION', '')),
        debug=os.getenv('DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()
