"""Key/value persistence store.

String-keyed get/set/remove of JSON-serialized values. Two implementations
share the same read semantics: a malformed payload is treated as absent
(logged, default returned) and never raised to the caller.

- `SqlKeyValueStore` keeps values in the `kv_store` table, reading through
  the read session factory and writing through the write session factory.
- `MemoryKeyValueStore` keeps serialized strings in a dict.

There is no versioning: concurrent writers to the same key are
last-write-wins.
"""

import json
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import StorageError
from core.logger import get_logger
from core.repository import KeyValueRepository

logger = get_logger("services.store")


class KeyValueStore:
    """Base class holding the JSON encoding rules; subclasses move raw text."""

    def _read_raw(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _write_raw(self, key: str, raw: str) -> None:
        raise NotImplementedError

    def _delete_raw(self, key: str) -> None:
        raise NotImplementedError

    def keys(self, prefix: str = "") -> List[str]:
        raise NotImplementedError

    def ping(self) -> bool:
        """Return True when the backing storage is reachable."""
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded value for `key`, or `default` if absent or corrupt."""
        raw = self._read_raw(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding malformed JSON stored under %r", key)
            return default

    def set(self, key: str, value: Any) -> None:
        """Serialize `value` as JSON and store it under `key`."""
        self._write_raw(key, json.dumps(value))

    def remove(self, key: str) -> None:
        """Delete `key`; removing an absent key is a no-op."""
        self._delete_raw(key)


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store; keeps serialized text so corruption behaves like the SQL store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def _read_raw(self, key):
        return self._data.get(key)

    def _write_raw(self, key, raw):
        self._data[key] = raw

    def _delete_raw(self, key):
        self._data.pop(key, None)

    def keys(self, prefix=""):
        return sorted(k for k in self._data if k.startswith(prefix))


class SqlKeyValueStore(KeyValueStore):
    """Store backed by the `kv_store` table.

    Read failures fail open (logged, treated as absent). Write failures are
    logged and raised as `StorageError` since the caller's data would be lost.
    """

    def __init__(
        self,
        write_factory: Callable[[], Session],
        read_factory: Optional[Callable[[], Session]] = None,
    ):
        self._write_factory = write_factory
        self._read_factory = read_factory or write_factory

    def _read_raw(self, key):
        session = self._read_factory()
        try:
            return KeyValueRepository(session).get_raw(key)
        except SQLAlchemyError:
            logger.exception("Failed to read %r from store", key)
            return None
        finally:
            session.close()

    def _write_raw(self, key, raw):
        session = self._write_factory()
        try:
            KeyValueRepository(session).set_raw(key, raw)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to write %r to store", key)
            raise StorageError("Failed to persist value", key=key) from exc
        finally:
            session.close()

    def _delete_raw(self, key):
        session = self._write_factory()
        try:
            KeyValueRepository(session).delete(key)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to remove %r from store", key)
            raise StorageError("Failed to remove value", key=key) from exc
        finally:
            session.close()

    def keys(self, prefix=""):
        session = self._read_factory()
        try:
            return KeyValueRepository(session).keys(prefix)
        finally:
            session.close()

    def ping(self):
        session = self._read_factory()
        try:
            KeyValueRepository(session).count()
            return True
        except SQLAlchemyError:
            logger.exception("Store health check failed")
            return False
        finally:
            session.close()
