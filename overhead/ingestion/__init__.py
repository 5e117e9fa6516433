"""
Data ingestion module for Flight Overhead.

Handles polling the OpenSky API, parsing state vectors, aircraft
reference lookups and conversion into Flight objects.
"""

from overhead.ingestion.opensky_client import OpenSkyClient, BoundingBox, StateVector
from overhead.ingestion.aircraft_db import AircraftLookup, AircraftInfo, load_aircraft_csv
from overhead.ingestion.mapper import FlightMapper

__all__ = [
    'OpenSkyClient',
    'BoundingBox',
    'StateVector',
    'AircraftLookup',
    'AircraftInfo',
    'load_aircraft_csv',
    'FlightMapper',
]
