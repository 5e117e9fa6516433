"""
Aircraft model - static reference data for ICAO24 lookups.

OpenSky state vectors carry no aircraft type, so notifications would
always read "Unknown" without this table. It is loaded once from the
OpenSky aircraft database CSV and only ever read afterwards.
"""

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from overhead.models.base import Base


class Aircraft(Base):
    """One airframe, keyed by its lowercase 6-character ICAO24 address."""

    __tablename__ = 'aircraft'

    icao24: Mapped[str] = mapped_column(String(6), primary_key=True)
    registration: Mapped[Optional[str]] = mapped_column(String(10))  # 'N12345'
    type_code: Mapped[Optional[str]] = mapped_column(String(4), index=True)  # 'B738'
    manufacturer: Mapped[Optional[str]] = mapped_column(String(100))
    model: Mapped[Optional[str]] = mapped_column(String(100))  # as registered, e.g. '737-8H4'
    operator: Mapped[Optional[str]] = mapped_column(String(100))
    operator_icao: Mapped[Optional[str]] = mapped_column(String(3))  # 'UAL'

    def __repr__(self) -> str:
        return f'<Aircraft {self.icao24} {self.type_code or "?"} {self.operator_icao or "-"}>'
