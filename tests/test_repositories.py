from unittest.mock import MagicMock

import pytest

from overhead.errors import ApiError, StorageError
from overhead.ingestion import AircraftInfo
from overhead.models import AppSettings, Location
from overhead.repositories import FlightApiRepository, FlightRepository, SettingsRepository
from overhead.repositories.flight_api import nearby_cache_key
from overhead.repositories.flight_history import FLIGHTS_STORAGE_KEY
from overhead.repositories.settings import SETTINGS_STORAGE_KEY
from tests.conftest import make_flight, make_state


@pytest.fixture
def client():
    client = MagicMock()
    client.get_states_in_area.return_value = [
        make_state(icao24='near01', latitude=40.01, longitude=-74.0),
        # Inside the bounding box, outside the circle
        make_state(icao24='corner', latitude=40.04, longitude=-73.95),
    ]
    return client


@pytest.fixture
def lookup():
    lookup = MagicMock()
    lookup.get.side_effect = lambda icao24, callsign=None: AircraftInfo(icao24=icao24, type_code='B738')
    return lookup


@pytest.fixture
def api_repository(client, cache, lookup):
    return FlightApiRepository(client=client, cache=cache, aircraft_lookup=lookup)


# -----------------------------------------------------------------------------
# FlightApiRepository
# -----------------------------------------------------------------------------

def test_nearby_cache_key_rounds_location():
    assert nearby_cache_key(40.00001, -74.0, 5) == 'nearby_aircraft_40_-74_5'
    assert nearby_cache_key(40.004, -73.996, 2.5) == nearby_cache_key(40.0, -74.0, 2.5)


def test_get_nearby_aircraft_filters_to_circle(api_repository, client):
    flights = api_repository.get_nearby_aircraft(40.0, -74.0, 5.0)

    assert [f.id for f in flights] == ['near01']
    assert flights[0].aircraft_type == 'B738'
    assert flights[0].distance_km == pytest.approx(1.112, abs=0.001)

    bbox = client.get_states_in_area.call_args.args[0]
    assert bbox.lat_min < 40.0 < bbox.lat_max


def test_get_nearby_aircraft_uses_cache(api_repository, client):
    first = api_repository.get_nearby_aircraft(40.0, -74.0, 5.0)
    second = api_repository.get_nearby_aircraft(40.0, -74.0, 5.0)

    assert client.get_states_in_area.call_count == 1
    assert second == first


def test_get_nearby_aircraft_refetches_after_ttl(api_repository, client, clock):
    api_repository.get_nearby_aircraft(40.0, -74.0, 5.0)
    clock.advance(61)
    api_repository.get_nearby_aircraft(40.0, -74.0, 5.0)

    assert client.get_states_in_area.call_count == 2


def test_get_nearby_aircraft_propagates_api_error(api_repository, client):
    client.get_states_in_area.side_effect = ApiError('rate limited')

    with pytest.raises(ApiError, match='rate limited'):
        api_repository.get_nearby_aircraft(40.0, -74.0, 5.0)


def test_get_nearby_aircraft_wraps_unexpected_errors(api_repository, client):
    client.get_states_in_area.side_effect = RuntimeError('boom')

    with pytest.raises(ApiError) as exc_info:
        api_repository.get_nearby_aircraft(40.0, -74.0, 5.0)

    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_get_aircraft_by_id(api_repository, client):
    client.get_state_by_icao.return_value = make_state(icao24='abc123')

    flight = api_repository.get_aircraft_by_id('ABC123')
    api_repository.get_aircraft_by_id('abc123')

    assert flight.id == 'abc123'
    client.get_state_by_icao.assert_called_once_with('abc123')


def test_get_aircraft_by_id_not_found(api_repository, client):
    client.get_state_by_icao.return_value = None
    assert api_repository.get_aircraft_by_id('abc123') is None


# -----------------------------------------------------------------------------
# FlightRepository
# -----------------------------------------------------------------------------

def test_history_appends_in_order(storage):
    repository = FlightRepository(storage=storage)

    repository.add_flights([make_flight('a'), make_flight('b')])
    repository.add_flight(make_flight('c'))

    assert [f.id for f in repository.get_all_flights()] == ['a', 'b', 'c']


def test_history_is_capped_to_newest(storage):
    repository = FlightRepository(storage=storage, limit=3)

    repository.add_flights([make_flight(str(i)) for i in range(5)])

    assert [f.id for f in repository.get_all_flights()] == ['2', '3', '4']


def test_corrupt_history_raises_storage_error(storage):
    storage.store_data(FLIGHTS_STORAGE_KEY, [{'callsign': 'no id'}])

    with pytest.raises(StorageError):
        FlightRepository(storage=storage).get_all_flights()


def test_get_flight_by_id_returns_most_recent(storage):
    repository = FlightRepository(storage=storage)
    repository.add_flight(make_flight('a', altitude=1000))
    repository.add_flight(make_flight('a', altitude=2000))

    assert repository.get_flight_by_id('a').altitude == 2000
    assert repository.get_flight_by_id('missing') is None


def test_flights_by_date_range_is_inclusive(storage):
    repository = FlightRepository(storage=storage)
    repository.save_flights([
        make_flight('early', timestamp=100),
        make_flight('start', timestamp=200),
        make_flight('end', timestamp=300),
        make_flight('late', timestamp=400),
    ])

    assert [f.id for f in repository.get_flights_by_date_range(200, 300)] == ['start', 'end']


def test_save_flights_replaces_and_delete_clears(storage):
    repository = FlightRepository(storage=storage)
    repository.add_flight(make_flight('old'))

    repository.save_flights([make_flight('new')])
    assert [f.id for f in repository.get_all_flights()] == ['new']

    repository.delete_all_flights()
    assert repository.get_all_flights() == []


def test_flights_round_trip_all_fields(storage):
    repository = FlightRepository(storage=storage)
    flight = make_flight(
        'abc123', flight_number='UAL839', aircraft_type='B738', altitude=35000,
        latitude=40.0, longitude=-74.0, distance_km=1.5,
    )

    repository.add_flight(flight)

    assert repository.get_all_flights() == [flight]


# -----------------------------------------------------------------------------
# SettingsRepository
# -----------------------------------------------------------------------------

def test_first_read_persists_defaults(storage):
    repository = SettingsRepository(storage=storage)

    settings = repository.get_settings()

    assert settings == AppSettings(detection_radius_km=5.0)
    assert storage.get_data(SETTINGS_STORAGE_KEY) == settings.to_dict()


def test_update_detection_radius(storage):
    repository = SettingsRepository(storage=storage)

    repository.update_detection_radius(8)

    assert SettingsRepository(storage=storage).get_settings().detection_radius_km == 8.0


@pytest.mark.parametrize('radius', [0, -2.5])
def test_update_detection_radius_rejects_non_positive(storage, radius):
    with pytest.raises(ValueError):
        SettingsRepository(storage=storage).update_detection_radius(radius)


def test_update_last_known_location_keeps_radius(storage):
    repository = SettingsRepository(storage=storage)
    repository.update_detection_radius(3)

    settings = repository.update_last_known_location(Location(51.5, -0.12))

    assert settings.detection_radius_km == 3.0
    assert repository.get_settings().last_known_location == Location(51.5, -0.12)


@pytest.mark.parametrize('stored', [
    {'detection_radius_km': 'wide'},
    {'last_known_location': {'latitude': 1.0}},
])
def test_corrupt_settings_raise_storage_error(storage, stored):
    storage.store_data(SETTINGS_STORAGE_KEY, stored)

    with pytest.raises(StorageError):
        SettingsRepository(storage=storage).get_settings()
