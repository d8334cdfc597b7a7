#!/usr/bin/env python3
"""
Database initialization script.

This script brings the configured database up to the latest migration and
seeds the role catalogue.

Usage:
    python -m skillgauge.scripts.init_db [--create-all]
"""

import sys
import logging
import argparse

from sqlalchemy.orm import Session

from skillgauge.common.db.session import engine
from skillgauge.config import settings
from skillgauge.database.init_db import init_db, seed_roles, upgrade_database

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    """Initialize the database."""
    parser = argparse.ArgumentParser(description="Initialize the SkillGauge database")
    parser.add_argument(
        "--create-all",
        action="store_true",
        help="create tables from the ORM models instead of running migrations"
    )
    args = parser.parse_args(argv)

    try:
        if args.create_all:
            init_db(engine)
        else:
            upgrade_database(settings.DATABASE_URL)
            with Session(engine) as session:
                seed_roles(session)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Error initializing database: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
