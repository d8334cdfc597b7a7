"""
Database Configuration Loading

This module resolves database connection settings from the application
configuration (environment variables or ``.env``).
"""

from typing import Any, Dict

from skillgauge.config import settings
from skillgauge.common.logger import app_logger

# Module logger
logger = app_logger.getChild("db.config")


def get_database_settings() -> Dict[str, Any]:
    """
    Load database connection settings.

    Returns:
        A dictionary containing the connection URL, the inferred database
        type and the pool options.
    """
    database_url = settings.DATABASE_URL

    if database_url.startswith("postgresql"):
        db_type = "postgresql"
    elif database_url.startswith("mysql"):
        db_type = "mysql"
    elif database_url.startswith("sqlite"):
        db_type = "sqlite"
    else:
        db_type = "unknown"
        logger.warning("Unrecognized database URL scheme; using SQLAlchemy defaults")

    db_settings = {
        "database_url": database_url,
        "db_type": db_type,
        "echo": settings.SQL_ECHO,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
    }
    logger.debug("Resolved database settings for %s", db_type)
    return db_settings
