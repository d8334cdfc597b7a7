"""
Database Module

This package provides database connection settings, engine creation and
session management for the application.
"""

from skillgauge.common.db.connection import get_database_settings

from skillgauge.common.db.repository import BaseRepository

from skillgauge.common.db.session import (
    engine,
    SessionLocal,
    create_engine_from_settings,
    create_session_factory,
    get_session,
    atomic,
    Session
)

__all__ = [
    'get_database_settings',
    'engine',
    'SessionLocal',
    'create_engine_from_settings',
    'create_session_factory',
    'get_session',
    'atomic',
    'Session',
    'BaseRepository',
]
