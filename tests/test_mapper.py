from overhead.ingestion import AircraftInfo, FlightMapper
from overhead.models import UNKNOWN
from tests.conftest import make_state


def test_to_flight_converts_units_and_fields():
    info = AircraftInfo(icao24='abc123', type_code='B738', operator='United Airlines')

    flight = FlightMapper.to_flight(make_state(), info)

    assert flight.id == 'abc123'
    assert flight.flight_number == 'UAL839'
    assert flight.aircraft_type == 'B738'
    assert flight.operator == 'United Airlines'
    assert flight.altitude == 35000
    assert flight.speed == 450
    assert flight.heading == 90.0
    assert flight.origin_city == 'United States'
    assert flight.origin == UNKNOWN
    assert flight.destination == UNKNOWN
    assert (flight.latitude, flight.longitude) == (40.0, -74.0)
    assert flight.timestamp == 1700000001
    assert flight.is_on_ground is False


def test_to_flight_placeholders_for_missing_data():
    state = make_state(callsign='        ', baro_altitude=None, velocity=None)

    flight = FlightMapper.to_flight(state)

    assert flight.flight_number == UNKNOWN
    assert flight.aircraft_type == UNKNOWN
    assert flight.altitude == 0
    assert flight.speed == 0
    assert not flight.has_known_type


def test_to_flight_without_type_code():
    flight = FlightMapper.to_flight(make_state(), AircraftInfo(icao24='abc123'))
    assert flight.aircraft_type == UNKNOWN
