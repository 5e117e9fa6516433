"""
StateVector -> Flight conversion.

OpenSky reports SI units and no route data; the Flight model carries
display units and 'Unknown' placeholders for what the API cannot tell us.
"""

from typing import Optional

from overhead.ingestion.aircraft_db import AircraftInfo
from overhead.ingestion.opensky_client import StateVector
from overhead.models import Flight, UNKNOWN

FEET_PER_METER = 3.28084
KNOTS_PER_MPS = 1.94384


class FlightMapper:
    """Stateless conversions between API and domain representations."""

    @staticmethod
    def to_flight(state: StateVector, aircraft_info: Optional[AircraftInfo] = None) -> Flight:
        callsign = state.callsign.strip() if state.callsign else ''
        flight_number = callsign or UNKNOWN

        altitude = round(state.baro_altitude * FEET_PER_METER) if state.baro_altitude else 0
        speed = round(state.velocity * KNOTS_PER_MPS) if state.velocity else 0

        aircraft_type = UNKNOWN
        operator = None
        if aircraft_info is not None:
            aircraft_type = aircraft_info.type_code or UNKNOWN
            operator = aircraft_info.operator

        return Flight(
            id=state.icao24,
            flight_number=flight_number,
            aircraft_type=aircraft_type,
            operator=operator,
            origin=UNKNOWN,
            origin_city=state.origin_country or UNKNOWN,
            destination=UNKNOWN,
            destination_city=UNKNOWN,
            altitude=altitude,
            heading=state.true_track or 0,
            speed=speed,
            latitude=state.latitude,
            longitude=state.longitude,
            timestamp=int(state.last_contact or state.time_position or 0),
            is_on_ground=state.on_ground,
        )
