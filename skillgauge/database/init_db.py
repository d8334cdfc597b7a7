"""
Database initialization.

This module provides functions for:
1. Creating the database schema from the ORM metadata
2. Seeding the closed role catalogue
3. Bringing an existing database up to date with Alembic
"""

import os
from typing import Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from skillgauge.common.auth.user import Role as RoleName
from skillgauge.common.logger import app_logger
from skillgauge.database.base import metadata
from skillgauge.database import models  # noqa: F401  (registers tables on the metadata)

# Setup module logger
logger = app_logger.getChild("database.init_db")

ALEMBIC_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "alembic")


def seed_roles(session: Session) -> int:
    """
    Insert any role of the closed catalogue that is missing.

    Returns:
        Number of roles inserted
    """
    existing = set(session.scalars(select(models.Role.name)))
    missing = [role.value for role in RoleName if role.value not in existing]
    for name in missing:
        session.add(models.Role(name=name))
    session.commit()
    if missing:
        logger.info("Seeded roles: %s", ", ".join(missing))
    return len(missing)


def init_db(bind: Optional[Engine] = None) -> Engine:
    """
    Create all tables that do not exist yet and seed the roles.

    Args:
        bind: Engine to initialize; defaults to the application engine

    Returns:
        The initialized engine
    """
    if bind is None:
        from skillgauge.common.db.session import engine as bind

    logger.info("Creating database tables")
    metadata.create_all(bind=bind)

    with Session(bind) as session:
        seed_roles(session)

    return bind


def upgrade_database(database_url: str, revision: str = "head") -> None:
    """Run Alembic migrations up to ``revision``."""
    from alembic import command
    from alembic.config import Config

    config = Config()
    config.set_main_option("script_location", ALEMBIC_DIR)
    config.set_main_option("sqlalchemy.url", database_url)
    logger.info("Upgrading database schema to %s", revision)
    command.upgrade(config, revision)
