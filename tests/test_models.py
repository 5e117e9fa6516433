import pytest

from overhead.config import _parse_bool, _parse_location
from overhead.errors import ApiError, AppError
from overhead.models import AppSettings, Flight, KeyValue, Location, SessionLocal, UNKNOWN, get_session


def test_flight_defaults():
    flight = Flight(id='abc123')

    assert flight.flight_number == UNKNOWN
    assert flight.aircraft_type == UNKNOWN
    assert not flight.has_position()
    assert not flight.has_known_type


def test_flight_from_dict_ignores_unknown_keys():
    flight = Flight.from_dict({'id': 'abc123', 'altitude': 1200, 'squawk': '7700'})

    assert flight.id == 'abc123'
    assert flight.altitude == 1200


def test_settings_round_trip():
    settings = AppSettings(detection_radius_km=3.5, last_known_location=Location(51.5, -0.12))
    assert AppSettings.from_dict(settings.to_dict()) == settings


def test_settings_from_partial_dict_uses_defaults():
    settings = AppSettings.from_dict({})

    assert settings.detection_radius_km == 5.0
    assert settings.last_known_location is None


def test_error_message_includes_cause():
    error = ApiError('OpenSky request failed', TimeoutError('read timed out'))

    assert isinstance(error, AppError)
    assert str(error) == 'OpenSky request failed (caused by TimeoutError: read timed out)'
    assert str(ApiError('plain')) == 'plain'


def test_parse_location():
    assert _parse_location('40.7, -74.0') == (40.7, -74.0)
    assert _parse_location('') is None
    assert _parse_location('north') is None


def test_parse_bool():
    assert _parse_bool('Yes')
    assert not _parse_bool('0')


def test_get_session_rolls_back_on_error():
    with pytest.raises(RuntimeError):
        with get_session() as session:
            session.add(KeyValue(key='draft', value='1'))
            session.flush()
            raise RuntimeError('boom')

    with SessionLocal() as session:
        assert session.get(KeyValue, 'draft') is None
