"""Database helpers: engines, session factories and DB initialization.

Provides read/write session factories built from `core.config` and an
`init_db` helper that creates the key/value table.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from .models import Base
from core.config import get_settings

_settings = get_settings()

# Read/Write partitioning pattern
# In production, point FITTRACK_WRITE_DATABASE_URL and FITTRACK_READ_DATABASE_URL at
# different instances. For SQLite this defaults to the same file.
WRITE_DATABASE_URL = _settings.write_database_url
READ_DATABASE_URL = _settings.effective_read_database_url


def build_engine(url: str):
    """Create an engine, disabling SQLite's same-thread check for the web server."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


# Engines
write_engine = build_engine(WRITE_DATABASE_URL)
read_engine = build_engine(READ_DATABASE_URL)

# Session factories
WriteSessionLocal = sessionmaker(bind=write_engine)
ReadSessionLocal = sessionmaker(bind=read_engine)


def init_db(engine=None):
    """Create the key/value table if it does not exist yet."""
    Base.metadata.create_all(bind=engine or write_engine)
