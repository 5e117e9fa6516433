"""
Flight Overhead.

Notifies when aircraft fly over a location, using OpenSky Network data.

Modules:
    detection/       Poll-to-poll deduplication and the polling loop
    notifications/   Throttled notifications with per-flight dedup
    images/          Aircraft type database and image download cache
    ingestion/       OpenSky client, aircraft reference data, state mapping
    repositories/    Nearby aircraft, flight history, settings
    models/          SQLAlchemy key-value and aircraft tables, domain dataclasses
    cache.py         Two-tier TTL cache with a key registry
    storage.py       JSON key-value storage
    geo.py           Haversine distance and radius filter
    location.py      Observer location (config or IP lookup)
    config.py        Centralized configuration from environment variables
"""

__version__ = '1.0.0'
