"""
Aircraft image service - aircraft type string to a local image file.

Resolution order for a type:
1. In-process map (type -> path)
2. TTL cache entry 'aircraft_image_{TYPE}' (7 days) whose file still exists;
   a recent miss ('aircraft_image_miss_{TYPE}', 30 minutes) short-circuits to None
3. Candidate image ids, most specific first:
   type database ids, legacy map id, category generic id
4. For each candidate: the file in the cache directory, else a download

Any failure degrades to None; a missing image never blocks a
notification.
"""

import logging
import shutil
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import requests

from overhead.cache import TTLCache
from overhead.config import config
from overhead.errors import AircraftImageError
from overhead.images.type_database import AircraftTypeDatabase
from overhead.models import UNKNOWN

logger = logging.getLogger(__name__)

IMAGE_EXTENSION = '.jpg'

# Legacy type -> image id map, kept for types the database does not list
AIRCRAFT_TYPE_MAP: Dict[str, str] = {
    # Commercial jets
    'B737': 'boeing-737',
    'B738': 'boeing-737-800',
    'B739': 'boeing-737-900',
    'B747': 'boeing-747',
    'B748': 'boeing-747-8',
    'B757': 'boeing-757',
    'B767': 'boeing-767',
    'B777': 'boeing-777',
    'B787': 'boeing-787',
    'A319': 'airbus-a319',
    'A320': 'airbus-a320',
    'A321': 'airbus-a321',
    'A330': 'airbus-a330',
    'A340': 'airbus-a340',
    'A350': 'airbus-a350',
    'A380': 'airbus-a380',

    # Regional jets
    'CRJ': 'bombardier-crj',
    'CRJ2': 'bombardier-crj-200',
    'CRJ7': 'bombardier-crj-700',
    'CRJ9': 'bombardier-crj-900',
    'E170': 'embraer-e170',
    'E175': 'embraer-e175',
    'E190': 'embraer-e190',
    'E195': 'embraer-e195',

    # Turboprops
    'DH8': 'bombardier-dash-8',
    'AT72': 'atr-72',
    'AT76': 'atr-72-600',
    'AT75': 'atr-72-500',

    # Private
    'C172': 'cessna-172',
    'C152': 'cessna-152',
    'C208': 'cessna-caravan',
    'PC12': 'pilatus-pc12',

    # Generic fallbacks
    'BOEING': 'boeing-generic',
    'AIRBUS': 'airbus-generic',
    'PRIVATE': 'private-generic',
    'HELICOPTER': 'helicopter-generic',
    'MILITARY': 'military-generic',
}

_GENERIC_KEYS = ('BOEING', 'AIRBUS', 'PRIVATE', 'HELICOPTER', 'MILITARY')


def image_cache_key(aircraft_type: str) -> str:
    return f'aircraft_image_{aircraft_type.strip().upper()}'


def image_miss_key(aircraft_type: str) -> str:
    return f'aircraft_image_miss_{aircraft_type.strip().upper()}'


def legacy_image_id(aircraft_type: str) -> Optional[str]:
    """
    Image id from the legacy map: exact, then prefix ('B737-800' ->
    B737), then a manufacturer generic. Never None for a known type.
    """
    if not aircraft_type or aircraft_type == UNKNOWN:
        return None

    normalized = aircraft_type.strip().upper()

    if normalized in AIRCRAFT_TYPE_MAP:
        return AIRCRAFT_TYPE_MAP[normalized]

    for key, image_id in AIRCRAFT_TYPE_MAP.items():
        if key not in _GENERIC_KEYS and normalized.startswith(key):
            return image_id

    if normalized.startswith('B') or 'BOEING' in normalized:
        return AIRCRAFT_TYPE_MAP['BOEING']
    if normalized.startswith('A') or 'AIRBUS' in normalized:
        return AIRCRAFT_TYPE_MAP['AIRBUS']
    if 'HELICOPTER' in normalized or normalized.startswith(('R22', 'R44')):
        return AIRCRAFT_TYPE_MAP['HELICOPTER']
    if 'MILITARY' in normalized or normalized.startswith('F') or 'FIGHTER' in normalized:
        return AIRCRAFT_TYPE_MAP['MILITARY']

    return AIRCRAFT_TYPE_MAP['PRIVATE']


class AircraftImageService:
    """
    Resolves and caches aircraft images on local disk.

    Usage:
        service = AircraftImageService()
        path = service.get_image_for_aircraft_type('B738')
    """

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        type_database: Optional[AircraftTypeDatabase] = None,
        cache_dir: Optional[Path] = None,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.cache = cache or TTLCache()
        self.type_database = type_database or AircraftTypeDatabase()
        self.cache_dir = Path(cache_dir or config.images.cache_dir)
        self.base_url = (base_url or config.images.base_url).rstrip('/')
        self.timeout = timeout or config.images.download_timeout_seconds
        self.session = session or requests.Session()

        self._memory: Dict[str, str] = {}
        self._lock = threading.RLock()
        self._prefetch_lock = threading.Lock()

        self._ensure_cache_dir()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def get_image_for_aircraft_type(self, aircraft_type: str) -> Optional[str]:
        """
        Local path of an image for aircraft_type, or None.

        'Unknown' and empty types resolve to None without any lookup.
        """
        if not aircraft_type or aircraft_type == UNKNOWN:
            return None

        key = aircraft_type.strip().upper()

        with self._lock:
            if key in self._memory:
                return self._memory[key]

        cached = self.cache.get_cached_data(image_cache_key(key))
        if cached and Path(cached).is_file():
            with self._lock:
                self._memory[key] = cached
            return cached

        if self.cache.get_cached_data(image_miss_key(key)):
            logger.debug(f'Skipping image lookup for {key}: recent miss')
            return None

        for image_id in self.candidate_image_ids(key):
            try:
                path = self._resolve_image_id(image_id)
            except AircraftImageError as e:
                logger.debug(f'No image {image_id} for {key}: {e}')
                continue

            path_str = str(path)
            with self._lock:
                self._memory[key] = path_str
            self.cache.cache_data(image_cache_key(key), path_str, config.cache.image_path_ttl_seconds)
            logger.debug(f'Resolved image for {key}: {image_id}')
            return path_str

        logger.warning(f'No aircraft image available for type: {aircraft_type}')
        self.cache.cache_data(image_miss_key(key), True, config.cache.image_miss_ttl_seconds)
        return None

    def candidate_image_ids(self, aircraft_type: str) -> List[str]:
        """Image ids to try for a type, most specific first, no duplicates."""
        candidates: List[str] = []

        known = self.type_database.lookup_by_icao_code(aircraft_type)
        if known:
            candidates.extend(known.image_ids)

        legacy = legacy_image_id(aircraft_type)
        if legacy:
            candidates.append(legacy)

        similar = self.type_database.lookup_similar(aircraft_type)
        if similar:
            candidates.extend(self.type_database.get_default_type(similar.category).image_ids)

        return list(dict.fromkeys(candidates))

    def prefetch_images_for_types(self, aircraft_types: Iterable[str]) -> None:
        """
        Resolve images for each unique type ahead of use.

        A prefetch already in progress makes this a no-op.
        """
        unique_types = list(dict.fromkeys(t for t in aircraft_types if t and t != UNKNOWN))
        if not unique_types:
            return

        if not self._prefetch_lock.acquire(blocking=False):
            logger.debug('Image prefetch already in progress, skipping')
            return

        try:
            logger.info(f'Prefetching {len(unique_types)} aircraft images')
            for aircraft_type in unique_types:
                if self.get_image_for_aircraft_type(aircraft_type) is None:
                    logger.warning(f'Failed to prefetch image for type: {aircraft_type}')
            logger.info('Aircraft image prefetching complete')
        finally:
            self._prefetch_lock.release()

    def clear_image_cache(self) -> None:
        """Forget every resolved image and delete the cache directory contents."""
        with self._lock:
            types = list(self._memory)
            self._memory.clear()

        for key in self.cache.keys():
            if key.startswith('aircraft_image_'):
                self.cache.remove_cache_item(key)

        shutil.rmtree(self.cache_dir, ignore_errors=True)
        self._ensure_cache_dir()

        logger.info(f'Aircraft image cache cleared ({len(types)} resolved types)')

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _ensure_cache_dir(self) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f'Error initializing aircraft image cache at {self.cache_dir}: {e}')

    def _local_path(self, image_id: str) -> Path:
        return self.cache_dir / f'{image_id}{IMAGE_EXTENSION}'

    def _resolve_image_id(self, image_id: str) -> Path:
        path = self._local_path(image_id)
        if path.is_file():
            return path
        self._download_image(image_id, path)
        return path

    def _download_image(self, image_id: str, path: Path) -> None:
        """
        Download an image into the cache directory.

        Writes to a temporary file first so a failed download never
        leaves a partial image behind.

        Raises:
            AircraftImageError on any network or file error
        """
        url = f'{self.base_url}/{image_id}{IMAGE_EXTENSION}'
        logger.debug(f'Downloading aircraft image: {url}')

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise AircraftImageError(f'Failed to download aircraft image: {image_id}', e) from e

        if not response.content:
            raise AircraftImageError(f'Empty image response for {image_id}')

        tmp_path = path.with_suffix(path.suffix + '.part')
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(response.content)
            tmp_path.replace(path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise AircraftImageError(f'Failed to write aircraft image: {path}', e) from e

        logger.debug(f'Aircraft image downloaded to: {path}')
