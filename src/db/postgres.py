"""
PostgreSQL connection and session management for contract storage.
"""

import logging

from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker

from src.config import Config
from src.utils.json_encoder import json_dumps

logger = logging.getLogger(__name__)

Base = declarative_base()

_engine = None
_session_factory = None


def get_engine():
    """Get or create the SQLAlchemy engine.

    JSON columns (contract price periods) are written with the Decimal-aware
    encoder so engine values can be stored without converting them first.
    """
    global _engine
    if _engine is None:
        _engine = create_engine(
            Config.get_postgres_url(),
            pool_pre_ping=True,
            json_serializer=json_dumps,
        )
    return _engine


def get_session():
    """New session; use as a context manager (`with get_session() as db:`)."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False)
    return _session_factory()


def init_db():
    """Create the contract tables if they do not exist."""
    from src.models import contract  # registers EnergyContract on Base
    Base.metadata.create_all(get_engine())
    logger.info(f"Initialized tables on {Config.POSTGRES_HOST}/{Config.POSTGRES_DATABASE}")


def test_connection():
    """Check the database is reachable. Returns (ok, message)."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
    except Exception as e:
        logger.warning(f"PostgreSQL connection failed: {e}")
        return False, str(e)
    return True, f"Connected to PostgreSQL ({Config.POSTGRES_DATABASE})"
