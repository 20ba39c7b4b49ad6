"""Database connection utilities."""

from .postgres import Base, get_engine, get_session, init_db, test_connection

__all__ = ['Base', 'get_engine', 'get_session', 'init_db', 'test_connection']
