import os
import tempfile

# Configuration is read at import time
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['IMAGE_CACHE_DIR'] = tempfile.mkdtemp(prefix='overhead-images-')
os.environ['USER_LOCATION'] = ''
os.environ['NOTIFY_WEBHOOK_URL'] = ''

import pytest

from overhead.cache import TTLCache
from overhead.ingestion import StateVector
from overhead.models import Base, Flight, engine
from overhead.storage import StorageService


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return StorageService()


@pytest.fixture
def cache(storage, clock):
    return TTLCache(storage=storage, clock=clock)


def make_flight(id='abc123', **kwargs) -> Flight:
    return Flight(id=id, **kwargs)


def make_state_array(
    icao24='abc123',
    callsign='UAL839  ',
    latitude=40.0,
    longitude=-74.0,
    baro_altitude=10668.0,
    velocity=231.5,
):
    """Raw OpenSky state vector, as found in the 'states' list."""
    return [
        icao24, callsign, 'United States', 1700000000, 1700000001,
        longitude, latitude, baro_altitude, False, velocity,
        90.0, 0.0, None, 10700.0, '1234', False, 0,
    ]


def make_state(**kwargs) -> StateVector:
    return StateVector.from_array(make_state_array(**kwargs))
