"""
Persistent JSON key-value storage.

Thin layer over the ``kv_store`` table. Values go in and come out as
plain JSON-compatible Python objects; callers own their key namespaces.
"""

import json
import logging
from typing import Any, Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from overhead.errors import StorageError
from overhead.models import KeyValue, SessionLocal, get_session

logger = logging.getLogger(__name__)


class StorageService:
    """Store, fetch and remove JSON documents by key."""

    def store_data(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f'Value for key {key} is not JSON serializable', e) from e

        try:
            with get_session() as session:
                row = session.get(KeyValue, key)
                if row is None:
                    session.add(KeyValue(key=key, value=payload))
                else:
                    row.value = payload
        except SQLAlchemyError as e:
            logger.error(f'Error storing data for key {key}: {e}')
            raise StorageError(f'Failed to store data for key: {key}', e) from e

    def get_data(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if the key is absent."""
        try:
            with SessionLocal() as session:
                row = session.get(KeyValue, key)
                payload = row.value if row is not None else None
        except SQLAlchemyError as e:
            logger.error(f'Error retrieving data for key {key}: {e}')
            raise StorageError(f'Failed to retrieve data for key: {key}', e) from e

        if payload is None:
            return None

        try:
            return json.loads(payload)
        except ValueError as e:
            raise StorageError(f'Corrupt JSON stored under key: {key}', e) from e

    def remove_data(self, key: str) -> None:
        self.multi_remove([key])

    def multi_remove(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        if not keys:
            return
        try:
            with get_session() as session:
                session.execute(delete(KeyValue).where(KeyValue.key.in_(keys)))
        except SQLAlchemyError as e:
            logger.error(f'Error removing {len(keys)} keys: {e}')
            raise StorageError(f'Failed to remove data for keys: {keys}', e) from e

    def get_all_keys(self) -> List[str]:
        try:
            with SessionLocal() as session:
                return list(session.scalars(select(KeyValue.key)))
        except SQLAlchemyError as e:
            logger.error(f'Error listing storage keys: {e}')
            raise StorageError('Failed to get all keys from storage', e) from e
