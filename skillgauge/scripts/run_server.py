#!/usr/bin/env python3
"""
Backend server runner script.

This script starts the FastAPI server with the appropriate configuration.
"""

import os
import sys
import logging

import uvicorn

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    """Run the backend server."""
    try:
        host = os.getenv("HOST", "0.0.0.0")
        port = int(os.getenv("PORT", 8000))
        reload_enabled = os.getenv("RELOAD", "true").lower() == "true"

        logger.info("Starting server on %s:%d (reload: %s)", host, port, reload_enabled)

        uvicorn.run(
            "skillgauge.main:app",
            host=host,
            port=port,
            reload=reload_enabled,
            log_level="info"
        )

    except Exception as e:
        logger.error("Error starting server: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
