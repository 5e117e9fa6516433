"""
KeyValue model - flat JSON key-value store.

Backs the TTL cache, the detection history and the user settings.
Every row is an opaque JSON document addressed by a string key; there
are no relations and no queries beyond lookup by key.
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from overhead.models.base import Base


class KeyValue(Base):
    """One stored document."""

    __tablename__ = 'kv_store'

    key: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        comment='Storage key (namespaced by caller)'
    )

    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment='JSON-encoded document'
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        comment='Last write timestamp'
    )

    def __repr__(self) -> str:
        return f'<KeyValue {self.key} ({len(self.value)} bytes)>'
