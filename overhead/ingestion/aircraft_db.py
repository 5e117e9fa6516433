"""
Aircraft reference data: ICAO24 address -> type, registration, operator.

OpenSky state vectors carry no aircraft type. This table fills it in so
a notification can read "B738" instead of "Unknown" and the image
resolver has a type code to work with.

Data comes from the OpenSky aircraft database CSV:
    python -m overhead load-aircraft aircraftDatabase.csv

Usage:
    from overhead.ingestion.aircraft_db import AircraftLookup

    lookup = AircraftLookup()
    info = lookup.get('a0b1c2', 'UAL839')
    print(info.type_code)  # 'B738'
"""

import csv
import dataclasses
import logging
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from overhead.models import Aircraft, SessionLocal, get_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AircraftInfo:
    """What is known about one airframe; everything but icao24 is optional."""
    icao24: str
    registration: Optional[str] = None
    type_code: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    operator: Optional[str] = None
    operator_icao: Optional[str] = None


# ICAO airline designator -> operator name, for callsign enrichment
AIRLINE_NAMES: Dict[str, str] = {
    'AAL': 'American Airlines',
    'DAL': 'Delta Air Lines',
    'UAL': 'United Airlines',
    'SWA': 'Southwest Airlines',
    'JBU': 'JetBlue Airways',
    'ASA': 'Alaska Airlines',
    'SKW': 'SkyWest Airlines',
    'FFT': 'Frontier Airlines',
    'NKS': 'Spirit Airlines',
    'ACA': 'Air Canada',
    'WJA': 'WestJet',
    'BAW': 'British Airways',
    'EZY': 'easyJet',
    'RYR': 'Ryanair',
    'DLH': 'Lufthansa',
    'AFR': 'Air France',
    'KLM': 'KLM Royal Dutch Airlines',
    'UAE': 'Emirates',
    'QFA': 'Qantas',
    'ANA': 'All Nippon Airways',
    'JAL': 'Japan Airlines',
    'CPA': 'Cathay Pacific',
    'SIA': 'Singapore Airlines',
    'FDX': 'FedEx Express',
    'UPS': 'UPS Airlines',
}

# CSV column -> Aircraft column, and whether the value is upper-cased
_CSV_COLUMNS = {
    'registration': ('registration', False),
    'typecode': ('type_code', True),
    'manufacturername': ('manufacturer', False),
    'model': ('model', False),
    'operator': ('operator', False),
    'operatoricao': ('operator_icao', True),
}


def extract_airline_from_callsign(callsign: Optional[str]) -> Optional[str]:
    """
    Airline designator from an airline-style callsign.

    'UAL839' -> 'UAL'; registrations ('N12345') and unknown prefixes -> None.
    """
    if not callsign or len(callsign) < 3:
        return None

    prefix = callsign[:3].upper()
    return prefix if prefix in AIRLINE_NAMES else None


class AircraftLookup:
    """
    LRU-cached reads from the aircraft reference table.

    A missing row is not an error, it just yields an AircraftInfo with
    no type. Database failures are logged and treated the same way.
    """

    def __init__(self, cache_size: int = 1000):
        self._cache: 'OrderedDict[str, AircraftInfo]' = OrderedDict()
        self._cache_size = cache_size

    def get(self, icao24: str, callsign: Optional[str] = None) -> AircraftInfo:
        """
        Reference data for an address, with the operator filled in from
        the callsign when the table does not name one.
        """
        icao24 = icao24.lower()

        info = self._cache.get(icao24)
        if info is None:
            info = self._load(icao24)
            self._cache[icao24] = info
            if len(self._cache) > self._cache_size:
                self._cache.popitem(last=False)
        else:
            self._cache.move_to_end(icao24)

        if info.operator_icao:
            return info

        airline_code = extract_airline_from_callsign(callsign)
        if airline_code is None:
            return info

        return dataclasses.replace(info, operator=AIRLINE_NAMES[airline_code], operator_icao=airline_code)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _load(self, icao24: str) -> AircraftInfo:
        try:
            with SessionLocal() as session:
                aircraft = session.get(Aircraft, icao24)
        except SQLAlchemyError as e:
            logger.warning(f'Aircraft lookup failed for {icao24}: {e}')
            return AircraftInfo(icao24=icao24)

        if aircraft is None:
            return AircraftInfo(icao24=icao24)

        return AircraftInfo(
            icao24=icao24,
            registration=aircraft.registration,
            type_code=aircraft.type_code,
            manufacturer=aircraft.manufacturer,
            model=aircraft.model,
            operator=aircraft.operator,
            operator_icao=aircraft.operator_icao,
        )


# -----------------------------------------------------------------------------
# CSV import
# -----------------------------------------------------------------------------

def load_aircraft_csv(csv_path: Path, batch_size: int = 5000) -> int:
    """
    Upsert the OpenSky aircraft database CSV into the aircraft table.

    Rows without a valid 6-character ICAO24 address are skipped.

    Returns:
        Number of rows written (0 if the file does not exist).
    """
    csv_path = Path(csv_path)
    if not csv_path.is_file():
        logger.error(f'Aircraft CSV not found: {csv_path}')
        return 0

    logger.info(f'Loading aircraft data from {csv_path}')
    loaded = 0
    batch: List[dict] = []

    for record in _read_records(csv_path):
        batch.append(record)
        if len(batch) >= batch_size:
            loaded += _upsert(batch)
            logger.info(f'Loaded {loaded} aircraft records...')
            batch = []

    if batch:
        loaded += _upsert(batch)

    logger.info(f'Loaded {loaded} total aircraft records')
    return loaded


def _read_records(csv_path: Path) -> Iterator[dict]:
    with open(csv_path, 'r', encoding='utf-8', errors='ignore', newline='') as f:
        for row in csv.DictReader(f):
            icao24 = _clean(row.get('icao24'))
            if not icao24 or len(icao24) != 6:
                continue

            record = {'icao24': icao24.lower()}
            for csv_column, (column, upper) in _CSV_COLUMNS.items():
                record[column] = _clean(row.get(csv_column), upper=upper)
            yield record


def _clean(value: Optional[str], upper: bool = False) -> Optional[str]:
    # Some OpenSky CSV fields are wrapped in single quotes
    value = (value or '').strip().strip("'").strip()
    if not value:
        return None
    return value.upper() if upper else value


def _upsert(records: List[dict]) -> int:
    stmt = sqlite_insert(Aircraft)
    stmt = stmt.on_conflict_do_update(
        index_elements=['icao24'],
        set_={column: stmt.excluded[column] for column, _ in _CSV_COLUMNS.values()},
    )
    with get_session() as session:
        session.execute(stmt, records)
    return len(records)
