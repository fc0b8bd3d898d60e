"""Repository for the key/value table.

Wraps a SQLAlchemy session with the small set of row operations the
persistence store needs. Values are handled as raw strings here; JSON
encoding and fail-open decoding live in `services.store`.
"""

from sqlalchemy.orm import Session
from typing import Optional, List
from database.models import StoredValue


class KeyValueRepository:
    """Row-level access to `StoredValue` records.

    Attributes:
        session: Database session for executing queries.
    """

    def __init__(self, session: Session):
        """Initialize repository with a session.

        Args:
            session: Database session.
        """
        self.session = session

    def get_raw(self, key: str) -> Optional[str]:
        """Return the raw stored text for `key`, or None if absent."""
        row = self.session.get(StoredValue, key)
        return row.value if row is not None else None

    def set_raw(self, key: str, value: str) -> None:
        """Insert or overwrite `key` and commit.

        Args:
            key: Store key.
            value: Serialized value.
        """
        row = self.session.get(StoredValue, key)
        if row is None:
            self.session.add(StoredValue(key=key, value=value))
        else:
            row.value = value
        self.session.commit()

    def delete(self, key: str) -> bool:
        """Delete `key` and commit.

        Returns:
            True if a row was deleted, False if the key was absent.
        """
        row = self.session.get(StoredValue, key)
        if row is None:
            return False
        self.session.delete(row)
        self.session.commit()
        return True

    def keys(self, prefix: str = "") -> List[str]:
        """List stored keys, optionally restricted to a prefix."""
        query = self.session.query(StoredValue.key)
        if prefix:
            query = query.filter(StoredValue.key.startswith(prefix))
        return [k for (k,) in query.order_by(StoredValue.key).all()]

    def count(self) -> int:
        """Count stored keys."""
        return self.session.query(StoredValue).count()
