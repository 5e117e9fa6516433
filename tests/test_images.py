from unittest.mock import MagicMock

import pytest
import requests

from overhead.images import (
    AircraftCategory,
    AircraftImageManager,
    AircraftImageService,
    AircraftTypeDatabase,
    legacy_image_id,
)
from overhead.config import config
from overhead.images.service import image_cache_key, image_miss_key
from tests.conftest import make_flight


# -----------------------------------------------------------------------------
# AircraftTypeDatabase
# -----------------------------------------------------------------------------

@pytest.fixture
def type_database():
    return AircraftTypeDatabase()


def test_lookup_by_exact_icao_code(type_database):
    aircraft_type = type_database.lookup_by_icao_code('b738')

    assert aircraft_type.manufacturer == 'Boeing'
    assert aircraft_type.model == '737-800'
    assert aircraft_type.category == AircraftCategory.COMMERCIAL_JET
    assert aircraft_type.image_ids[0] == 'boeing-737-800'


@pytest.mark.parametrize('code, expected', [
    ('B7378', 'B737'),
    ('CRJ', 'CRJ2'),
    ('A3889', 'A388'),
])
def test_lookup_by_icao_code_prefix(type_database, code, expected):
    assert type_database.lookup_by_icao_code(code).icao_code == expected


@pytest.mark.parametrize('code', ['', 'XYZ9', 'B'])
def test_lookup_by_icao_code_no_match(type_database, code):
    assert type_database.lookup_by_icao_code(code) is None


@pytest.mark.parametrize('code', ['C17', 'C20'])
def test_short_numeric_code_is_not_widened_to_longer_type(type_database, code):
    assert type_database.lookup_by_icao_code(code) is None
    assert type_database.lookup_similar(code).icao_code == 'OTHR'


def test_lookup_by_model_name_prefers_exact_model(type_database):
    assert type_database.lookup_by_model_name('737-800').icao_code == 'B738'
    assert type_database.lookup_by_model_name('Airbus A320').icao_code == 'A320'
    assert type_database.lookup_by_model_name('Dash 8').icao_code == 'DH8D'


def test_lookup_similar_uses_keyword_category(type_database):
    assert type_database.lookup_similar('Heli-Tour').icao_code == 'HELI'
    assert type_database.lookup_similar('Piper PA-28').icao_code == 'PRIV'
    assert type_database.lookup_similar('ZZZZ').icao_code == 'OTHR'
    assert type_database.lookup_similar('') is None


def test_get_default_type(type_database):
    default = type_database.get_default_type(AircraftCategory.REGIONAL_JET)

    assert default.icao_code == 'REGN'
    assert default.image_ids == ('regional-jet-generic',)
    assert default.display_name == 'Regional Jet'


# -----------------------------------------------------------------------------
# Legacy image ids
# -----------------------------------------------------------------------------

@pytest.mark.parametrize('aircraft_type, expected', [
    ('A320', 'airbus-a320'),
    ('B737-800', 'boeing-737'),
    ('E195X', 'embraer-e195'),
    ('B999', 'boeing-generic'),
    ('A999', 'airbus-generic'),
    ('R22', 'helicopter-generic'),
    ('F35', 'military-generic'),
    ('ZZZ', 'private-generic'),
])
def test_legacy_image_id(aircraft_type, expected):
    assert legacy_image_id(aircraft_type) == expected


@pytest.mark.parametrize('aircraft_type', ['', 'Unknown'])
def test_legacy_image_id_unknown(aircraft_type):
    assert legacy_image_id(aircraft_type) is None


# -----------------------------------------------------------------------------
# AircraftImageService
# -----------------------------------------------------------------------------

def image_response(content=b'\xff\xd8jpeg'):
    response = MagicMock()
    response.content = content
    return response


@pytest.fixture
def session():
    session = MagicMock()
    session.get.return_value = image_response()
    return session


@pytest.fixture
def image_service(cache, tmp_path, session):
    return AircraftImageService(
        cache=cache,
        cache_dir=tmp_path / 'images',
        base_url='https://img.test/',
        session=session,
    )


def test_candidate_image_ids_most_specific_first(image_service):
    assert image_service.candidate_image_ids('B738') == [
        'boeing-737-800', 'b737-800', 'b737', 'commercial-jet-generic',
    ]


def test_downloads_first_candidate(image_service, session, tmp_path):
    path = image_service.get_image_for_aircraft_type('B738')

    assert path == str(tmp_path / 'images' / 'boeing-737-800.jpg')
    assert (tmp_path / 'images' / 'boeing-737-800.jpg').read_bytes() == b'\xff\xd8jpeg'
    assert session.get.call_args.args[0] == 'https://img.test/boeing-737-800.jpg'


def test_resolved_path_is_memoized(image_service, session):
    first = image_service.get_image_for_aircraft_type('B738')
    second = image_service.get_image_for_aircraft_type('b738')

    assert first == second
    assert session.get.call_count == 1


def test_resolved_path_is_cached_with_ttl(image_service, cache):
    path = image_service.get_image_for_aircraft_type('B738')
    assert cache.get_cached_data(image_cache_key('B738')) == path


def test_new_service_reuses_ttl_cache(image_service, cache, tmp_path):
    path = image_service.get_image_for_aircraft_type('B738')
    other_session = MagicMock()

    fresh = AircraftImageService(cache=cache, cache_dir=tmp_path / 'images', session=other_session)

    assert fresh.get_image_for_aircraft_type('B738') == path
    other_session.get.assert_not_called()


def test_existing_file_is_not_downloaded(image_service, session, tmp_path):
    (tmp_path / 'images' / 'boeing-737-800.jpg').write_bytes(b'cached')

    path = image_service.get_image_for_aircraft_type('B738')

    assert path.endswith('boeing-737-800.jpg')
    session.get.assert_not_called()


def test_falls_back_to_next_candidate(image_service, session):
    session.get.side_effect = [requests.exceptions.ConnectionError('404'), image_response()]

    path = image_service.get_image_for_aircraft_type('B738')

    assert path.endswith('b737-800.jpg')
    assert session.get.call_count == 2


def test_http_error_and_empty_body_fall_through(image_service, session):
    not_found = image_response()
    not_found.raise_for_status.side_effect = requests.exceptions.HTTPError('404')
    session.get.side_effect = [not_found, image_response(b''), image_response()]

    path = image_service.get_image_for_aircraft_type('B738')

    assert path.endswith('b737.jpg')


def test_no_image_available(image_service, session, tmp_path):
    session.get.side_effect = requests.exceptions.ConnectionError('offline')

    assert image_service.get_image_for_aircraft_type('B738') is None
    assert list((tmp_path / 'images').iterdir()) == []


def test_failed_lookup_is_not_retried_until_miss_expires(image_service, session, clock):
    session.get.side_effect = requests.exceptions.ConnectionError('offline')
    assert image_service.get_image_for_aircraft_type('B738') is None
    attempts = session.get.call_count

    assert image_service.get_image_for_aircraft_type('b738') is None
    assert session.get.call_count == attempts

    clock.advance(config.cache.image_miss_ttl_seconds + 1)
    session.get.side_effect = None

    assert image_service.get_image_for_aircraft_type('B738').endswith('boeing-737-800.jpg')


def test_clear_image_cache_forgets_misses(image_service, session, cache):
    session.get.side_effect = requests.exceptions.ConnectionError('offline')
    image_service.get_image_for_aircraft_type('B738')
    assert cache.is_cache_valid(image_miss_key('B738'))

    image_service.clear_image_cache()

    assert not cache.is_cache_valid(image_miss_key('B738'))


@pytest.mark.parametrize('aircraft_type', ['', 'Unknown', None])
def test_unknown_type_has_no_image(image_service, session, aircraft_type):
    assert image_service.get_image_for_aircraft_type(aircraft_type) is None
    session.get.assert_not_called()


def test_prefetch_resolves_unique_types(image_service, session):
    image_service.prefetch_images_for_types(['B738', 'B738', 'Unknown', 'A320'])

    urls = [c.args[0] for c in session.get.call_args_list]
    assert urls == ['https://img.test/boeing-737-800.jpg', 'https://img.test/airbus-a320.jpg']


def test_prefetch_is_skipped_while_running(image_service, session):
    image_service._prefetch_lock.acquire()
    try:
        image_service.prefetch_images_for_types(['B738'])
    finally:
        image_service._prefetch_lock.release()

    session.get.assert_not_called()


def test_clear_image_cache(image_service, cache, tmp_path):
    cache.cache_data('nearby_aircraft_40_-74_5', [], 60)
    image_service.get_image_for_aircraft_type('B738')

    image_service.clear_image_cache()

    assert (tmp_path / 'images').is_dir()
    assert list((tmp_path / 'images').iterdir()) == []
    assert cache.keys() == ['nearby_aircraft_40_-74_5']


# -----------------------------------------------------------------------------
# AircraftImageManager
# -----------------------------------------------------------------------------

def test_manager_image_for_flight():
    service = MagicMock()
    service.get_image_for_aircraft_type.return_value = '/cache/a.jpg'
    manager = AircraftImageManager(service)

    assert manager.get_image_for_flight(make_flight(aircraft_type='B738')) == '/cache/a.jpg'
    assert manager.get_image_for_flight(make_flight()) is None
    service.get_image_for_aircraft_type.assert_called_once_with('B738')


def test_manager_swallows_service_errors():
    service = MagicMock()
    service.get_image_for_aircraft_type.side_effect = RuntimeError('disk')
    service.prefetch_images_for_types.side_effect = RuntimeError('disk')
    manager = AircraftImageManager(service)
    flight = make_flight(aircraft_type='B738')

    assert manager.get_image_for_flight(flight) is None
    manager.prefetch_images_for_flights([flight])


def test_manager_prefetch_skips_unknown_types():
    service = MagicMock()
    manager = AircraftImageManager(service)

    manager.prefetch_images_for_flights([make_flight()])
    service.prefetch_images_for_types.assert_not_called()

    manager.prefetch_images_for_flights([make_flight(aircraft_type='A320'), make_flight()])
    service.prefetch_images_for_types.assert_called_once_with(['A320'])
