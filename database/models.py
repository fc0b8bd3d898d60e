"""SQLAlchemy ORM models for the fitness tracking service.

The service persists everything through a single key/value table: the
nutrition ledger blob and the per-page tour completion flags are stored as
JSON-encoded text under string keys.
"""

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import declarative_base
from datetime import datetime

Base = declarative_base()


class StoredValue(Base):
    """ORM model for one key/value pair of the persistence store.

    `value` holds the JSON serialization of whatever was stored; the table
    keeps no schema version, so readers must tolerate malformed payloads.
    """

    __tablename__ = "kv_store"
    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
