"""
Aircraft type database - ICAO type designator to manufacturer, model,
category and image identifiers.

Image ids are listed most specific first ('boeing-737-800' before
'b737'), so the image service can walk down the list until one
downloads.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class AircraftCategory(str, Enum):
    """Broad aircraft class, used for generic fallback images."""
    COMMERCIAL_JET = 'commercial_jet'
    REGIONAL_JET = 'regional_jet'
    TURBOPROP = 'turboprop'
    PRIVATE = 'private'
    HELICOPTER = 'helicopter'
    MILITARY = 'military'
    OTHER = 'other'


@dataclass(frozen=True)
class AircraftType:
    icao_code: str
    manufacturer: str
    model: str
    category: AircraftCategory
    image_ids: Tuple[str, ...] = field(default_factory=tuple)
    description: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.manufacturer == 'Generic':
            return self.model
        return f'{self.manufacturer} {self.model}'


_C = AircraftCategory

# (ICAO code, manufacturer, model, category, image ids)
COMMON_AIRCRAFT_TYPES: List[tuple] = [
    ('B737', 'Boeing', '737', _C.COMMERCIAL_JET, ('boeing-737', 'b737-generic')),
    ('B738', 'Boeing', '737-800', _C.COMMERCIAL_JET, ('boeing-737-800', 'b737-800', 'b737')),
    ('B739', 'Boeing', '737-900', _C.COMMERCIAL_JET, ('boeing-737-900', 'b737-900', 'b737')),
    ('B38M', 'Boeing', '737 MAX 8', _C.COMMERCIAL_JET, ('boeing-737-max-8', 'b737-max', 'b737')),
    ('B744', 'Boeing', '747-400', _C.COMMERCIAL_JET, ('boeing-747-400', 'b747-400', 'b747')),
    ('B748', 'Boeing', '747-8', _C.COMMERCIAL_JET, ('boeing-747-8', 'b747-8', 'b747')),
    ('B752', 'Boeing', '757-200', _C.COMMERCIAL_JET, ('boeing-757-200', 'b757-200', 'b757')),
    ('B763', 'Boeing', '767-300', _C.COMMERCIAL_JET, ('boeing-767-300', 'b767-300', 'b767')),
    ('B77W', 'Boeing', '777-300ER', _C.COMMERCIAL_JET, ('boeing-777-300er', 'b777-300er', 'b777')),
    ('B788', 'Boeing', '787-8', _C.COMMERCIAL_JET, ('boeing-787-8', 'b787-8', 'b787')),
    ('B789', 'Boeing', '787-9', _C.COMMERCIAL_JET, ('boeing-787-9', 'b787-9', 'b787')),
    ('A319', 'Airbus', 'A319', _C.COMMERCIAL_JET, ('airbus-a319', 'a319')),
    ('A320', 'Airbus', 'A320', _C.COMMERCIAL_JET, ('airbus-a320', 'a320')),
    ('A20N', 'Airbus', 'A320neo', _C.COMMERCIAL_JET, ('airbus-a320neo', 'a320')),
    ('A321', 'Airbus', 'A321', _C.COMMERCIAL_JET, ('airbus-a321', 'a321')),
    ('A21N', 'Airbus', 'A321neo', _C.COMMERCIAL_JET, ('airbus-a321neo', 'a321')),
    ('A332', 'Airbus', 'A330-200', _C.COMMERCIAL_JET, ('airbus-a330-200', 'a330-200', 'a330')),
    ('A333', 'Airbus', 'A330-300', _C.COMMERCIAL_JET, ('airbus-a330-300', 'a330-300', 'a330')),
    ('A359', 'Airbus', 'A350-900', _C.COMMERCIAL_JET, ('airbus-a350-900', 'a350-900', 'a350')),
    ('A388', 'Airbus', 'A380-800', _C.COMMERCIAL_JET, ('airbus-a380-800', 'a380-800', 'a380')),
    ('CRJ2', 'Bombardier', 'CRJ-200', _C.REGIONAL_JET, ('bombardier-crj-200', 'crj-200', 'crj')),
    ('CRJ7', 'Bombardier', 'CRJ-700', _C.REGIONAL_JET, ('bombardier-crj-700', 'crj-700', 'crj')),
    ('CRJ9', 'Bombardier', 'CRJ-900', _C.REGIONAL_JET, ('bombardier-crj-900', 'crj-900', 'crj')),
    ('E170', 'Embraer', 'E170', _C.REGIONAL_JET, ('embraer-e170', 'e170')),
    ('E175', 'Embraer', 'E175', _C.REGIONAL_JET, ('embraer-e175', 'e175', 'e170')),
    ('E190', 'Embraer', 'E190', _C.REGIONAL_JET, ('embraer-e190', 'e190')),
    ('DH8D', 'Bombardier', 'Dash 8 Q400', _C.TURBOPROP, ('bombardier-dash-8-q400', 'dash-8-q400', 'dash-8')),
    ('AT76', 'ATR', 'ATR 72-600', _C.TURBOPROP, ('atr-72-600', 'atr-72', 'atr')),
    ('C172', 'Cessna', '172 Skyhawk', _C.PRIVATE, ('cessna-172', 'c172')),
    ('C208', 'Cessna', '208 Caravan', _C.PRIVATE, ('cessna-208', 'cessna-caravan', 'c208')),
    ('PC12', 'Pilatus', 'PC-12', _C.PRIVATE, ('pilatus-pc12', 'pc12')),
    ('R44', 'Robinson', 'R44', _C.HELICOPTER, ('robinson-r44', 'r44')),
    ('EC35', 'Airbus', 'EC135', _C.HELICOPTER, ('airbus-ec135', 'ec135')),
    ('F16', 'Lockheed Martin', 'F-16 Fighting Falcon', _C.MILITARY, ('f-16', 'f16')),
    ('C130', 'Lockheed Martin', 'C-130 Hercules', _C.MILITARY, ('c-130', 'c130', 'hercules')),
]

DEFAULT_TYPES: Dict[AircraftCategory, AircraftType] = {
    _C.COMMERCIAL_JET: AircraftType('COMM', 'Generic', 'Commercial Jet', _C.COMMERCIAL_JET, ('commercial-jet-generic',)),
    _C.REGIONAL_JET: AircraftType('REGN', 'Generic', 'Regional Jet', _C.REGIONAL_JET, ('regional-jet-generic',)),
    _C.TURBOPROP: AircraftType('TURB', 'Generic', 'Turboprop', _C.TURBOPROP, ('turboprop-generic',)),
    _C.PRIVATE: AircraftType('PRIV', 'Generic', 'Private Aircraft', _C.PRIVATE, ('private-aircraft-generic',)),
    _C.HELICOPTER: AircraftType('HELI', 'Generic', 'Helicopter', _C.HELICOPTER, ('helicopter-generic',)),
    _C.MILITARY: AircraftType('MILI', 'Generic', 'Military Aircraft', _C.MILITARY, ('military-aircraft-generic',)),
    _C.OTHER: AircraftType('OTHR', 'Generic', 'Aircraft', _C.OTHER, ('aircraft-generic',)),
}

# Keyword -> category, checked in order when nothing matched by code or model
_CATEGORY_HINTS: List[Tuple[Tuple[str, ...], Tuple[str, ...], AircraftCategory]] = [
    # (substrings, prefixes, category)
    (('BOEING',), ('B7', 'B-7'), _C.COMMERCIAL_JET),
    (('AIRBUS',), ('A3', 'A-3'), _C.COMMERCIAL_JET),
    (('HELI', 'ROTOR'), ('R22', 'R44'), _C.HELICOPTER),
    (('MILITARY', 'FIGHT'), ('F-',), _C.MILITARY),
    (('CRJ', 'ERJ', 'EMB'), (), _C.REGIONAL_JET),
    (('CESS', 'PIPER', 'BEECH'), (), _C.PRIVATE),
]


class AircraftTypeDatabase:
    """In-memory lookup of common aircraft types."""

    def __init__(self, types: Optional[List[tuple]] = None):
        self._types: Dict[str, AircraftType] = {}
        for code, manufacturer, model, category, image_ids in (types or COMMON_AIRCRAFT_TYPES):
            self._types[code] = AircraftType(
                icao_code=code,
                manufacturer=manufacturer,
                model=model,
                category=category,
                image_ids=tuple(image_ids),
                description=f'{manufacturer} {model}',
            )
        logger.debug(f'Initialized aircraft type database with {len(self._types)} entries')

    def __len__(self) -> int:
        return len(self._types)

    def lookup_by_icao_code(self, icao_code: str) -> Optional[AircraftType]:
        """
        Exact code match, else prefix match in either direction.

        'B738' -> B738; 'B7378' -> B737; 'CRJ' -> CRJ2. Only letter-only
        family stems match a longer code: 'C20' is a designator of its own
        and must not become C208.
        """
        if not icao_code:
            return None

        code = icao_code.strip().upper()
        if code in self._types:
            return self._types[code]

        for known, aircraft_type in self._types.items():
            if code.startswith(known):
                return aircraft_type
            if len(code) >= 3 and code.isalpha() and known.startswith(code):
                return aircraft_type

        return None

    def lookup_by_model_name(self, model_name: str) -> Optional[AircraftType]:
        if not model_name:
            return None

        name = model_name.strip().upper()

        # Exact pass first, so '737-800' is not taken by '737'
        for aircraft_type in self._types.values():
            model = aircraft_type.model.upper()
            if name in (model, f'{aircraft_type.manufacturer.upper()} {model}'):
                return aircraft_type

        for aircraft_type in self._types.values():
            model = aircraft_type.model.upper()
            full_name = f'{aircraft_type.manufacturer.upper()} {model}'
            if model in name or name in model or name in full_name:
                return aircraft_type

        return None

    def lookup_similar(self, query: str) -> Optional[AircraftType]:
        """
        Best effort match for any string: code, then model name, then
        a category default picked from keywords. Never None for a
        non-empty query.
        """
        if not query:
            return None

        match = self.lookup_by_icao_code(query) or self.lookup_by_model_name(query)
        if match:
            return match

        normalized = query.strip().upper()
        for substrings, prefixes, category in _CATEGORY_HINTS:
            if any(s in normalized for s in substrings) or any(normalized.startswith(p) for p in prefixes):
                return self.get_default_type(category)

        return self.get_default_type(AircraftCategory.OTHER)

    def get_default_type(self, category: AircraftCategory) -> AircraftType:
        return DEFAULT_TYPES[category]
