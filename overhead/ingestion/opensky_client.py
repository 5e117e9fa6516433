"""
OpenSky Network REST client.

Only the /states/all endpoint is used: either every aircraft inside a
latitude/longitude box, or specific aircraft by ICAO24 address.
Anonymous access works but is rate limited harder, so credentials are
optional.

Every transport, HTTP or decoding failure surfaces as ApiError.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from requests.auth import HTTPBasicAuth

from overhead.config import config
from overhead.errors import ApiError

logger = logging.getLogger(__name__)

KM_PER_DEGREE = 111.0

# Positions in an OpenSky state vector array
IDX_ICAO24 = 0
IDX_CALLSIGN = 1
IDX_ORIGIN_COUNTRY = 2
IDX_TIME_POSITION = 3
IDX_LAST_CONTACT = 4
IDX_LONGITUDE = 5
IDX_LATITUDE = 6
IDX_BARO_ALTITUDE = 7
IDX_ON_GROUND = 8
IDX_VELOCITY = 9
IDX_TRUE_TRACK = 10
IDX_VERTICAL_RATE = 11
STATE_VECTOR_LENGTH = 17


@dataclass
class BoundingBox:
    """Latitude/longitude rectangle, in degrees."""
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    @classmethod
    def from_center_radius(cls, center_lat: float, center_lon: float, radius_km: float) -> 'BoundingBox':
        """
        Smallest box containing the circle of radius_km around a point.

        A degree of longitude shrinks with cos(latitude); near the poles
        the box spans all longitudes. Bounds are clamped to valid ranges.
        """
        lat_delta = radius_km / KM_PER_DEGREE

        cos_lat = abs(math.cos(math.radians(center_lat)))
        if cos_lat < 1e-6:
            lon_min, lon_max = -180.0, 180.0
        else:
            lon_delta = radius_km / (KM_PER_DEGREE * cos_lat)
            lon_min = max(-180.0, center_lon - lon_delta)
            lon_max = min(180.0, center_lon + lon_delta)

        return cls(
            lat_min=max(-90.0, center_lat - lat_delta),
            lat_max=min(90.0, center_lat + lat_delta),
            lon_min=lon_min,
            lon_max=lon_max,
        )

    def to_params(self) -> Dict[str, float]:
        return {
            'lamin': self.lat_min,
            'lamax': self.lat_max,
            'lomin': self.lon_min,
            'lomax': self.lon_max,
        }


@dataclass
class StateVector:
    """
    The parts of an OpenSky state vector this application uses.

    Units are the API's: metres, metres per second, degrees, Unix seconds.
    Anything but icao24 may be None.
    """
    icao24: str
    callsign: Optional[str]
    origin_country: Optional[str]
    time_position: Optional[int]
    last_contact: Optional[int]
    longitude: Optional[float]
    latitude: Optional[float]
    baro_altitude: Optional[float]
    on_ground: bool
    velocity: Optional[float]
    true_track: Optional[float]
    vertical_rate: Optional[float]

    @classmethod
    def from_array(cls, arr: Optional[List[Any]]) -> Optional['StateVector']:
        """Parse one entry of the 'states' list; None if it is malformed."""
        if not arr or len(arr) < STATE_VECTOR_LENGTH:
            return None

        icao24 = arr[IDX_ICAO24]
        if not isinstance(icao24, str) or not icao24.strip():
            return None

        # Callsigns are space padded to 8 characters
        callsign = (arr[IDX_CALLSIGN] or '').strip() or None

        return cls(
            icao24=icao24.strip().lower(),
            callsign=callsign,
            origin_country=arr[IDX_ORIGIN_COUNTRY],
            time_position=arr[IDX_TIME_POSITION],
            last_contact=arr[IDX_LAST_CONTACT],
            longitude=arr[IDX_LONGITUDE],
            latitude=arr[IDX_LATITUDE],
            baro_altitude=arr[IDX_BARO_ALTITUDE],
            on_ground=bool(arr[IDX_ON_GROUND]),
            velocity=arr[IDX_VELOCITY],
            true_track=arr[IDX_TRUE_TRACK],
            vertical_rate=arr[IDX_VERTICAL_RATE],
        )

    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class OpenSkyClient:
    """
    Client for the OpenSky /states/all endpoint.

    Keeps at least 5 s (authenticated) or 10 s (anonymous) between
    requests by sleeping before a request that comes too soon.
    """

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        base_url: str = 'https://opensky-network.org/api',
        timeout: float = 15,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.states_url = f'{base_url.rstrip("/")}/states/all'
        self.timeout = timeout
        self.auth = HTTPBasicAuth(username, password) if username and password else None
        if self.auth is None:
            logger.warning('OpenSky client is anonymous; requests are limited to one per 10s')

        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

        self.min_interval = 5.0 if self.auth else 10.0
        self.last_request_time: float = 0
        self._sleep = sleep

    @classmethod
    def from_config(cls) -> 'OpenSkyClient':
        return cls(
            username=config.opensky.username,
            password=config.opensky.password,
            base_url=config.opensky.base_url,
            timeout=config.opensky.timeout_seconds,
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_states(
        self,
        bbox: Optional[BoundingBox] = None,
        icao24: Optional[List[str]] = None,
    ) -> Tuple[int, List[StateVector]]:
        """
        Current state vectors, optionally limited to a box or to addresses.

        Returns:
            (snapshot time reported by OpenSky, positioned state vectors)

        Raises:
            ApiError on network, HTTP or decoding failures
        """
        params: Dict[str, Any] = {}
        if bbox is not None:
            params.update(bbox.to_params())
        if icao24:
            params['icao24'] = ','.join(code.lower() for code in icao24)

        payload = self._request(params)

        snapshot_time = payload.get('time') or int(time.time())
        raw_states = payload.get('states') or []

        states = [sv for sv in map(StateVector.from_array, raw_states) if sv and sv.has_position()]
        logger.info(f'OpenSky returned {len(raw_states)} states, {len(states)} with position')

        return snapshot_time, states

    def get_states_in_area(self, bbox: BoundingBox) -> List[StateVector]:
        _, states = self.get_states(bbox=bbox)
        return states

    def get_state_by_icao(self, icao24: str) -> Optional[StateVector]:
        """One aircraft by address, or None if OpenSky has no position for it."""
        _, states = self.get_states(icao24=[icao24])
        if not states:
            logger.info(f'No aircraft found with ICAO24: {icao24}')
            return None
        return states[0]

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _throttle(self) -> None:
        wait = self.min_interval - (time.time() - self.last_request_time)
        if wait > 0:
            logger.debug(f'Rate limiting: sleeping {wait:.1f}s')
            self._sleep(wait)

    def _request(self, params: Dict[str, Any]) -> dict:
        self._throttle()
        logger.debug(f'GET {self.states_url} params={params}')

        try:
            response = self.session.get(self.states_url, params=params, auth=self.auth, timeout=self.timeout)
            self.last_request_time = time.time()
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.Timeout as e:
            logger.error(f'OpenSky request timed out after {self.timeout}s')
            raise ApiError('OpenSky API request timed out', e) from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 429:
                logger.warning('OpenSky rate limit exceeded')
            else:
                logger.error(f'OpenSky API error: HTTP {status}')
            raise ApiError(f'OpenSky API returned HTTP {status}', e) from e
        except requests.exceptions.RequestException as e:
            logger.error(f'OpenSky request failed: {e}')
            raise ApiError('Failed to fetch aircraft data from OpenSky API', e) from e
        except ValueError as e:
            logger.error(f'OpenSky returned invalid JSON: {e}')
            raise ApiError('OpenSky API returned an invalid response', e) from e

        if not isinstance(payload, dict):
            raise ApiError(f'OpenSky API returned unexpected payload: {type(payload).__name__}')

        return payload
