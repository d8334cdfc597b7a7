"""
Main application entry point for the SkillGauge assessment platform.

This module builds the FastAPI application, registers the domain routers
and shared exception handlers, and prepares the database on startup.

Usage:
    - Direct: python -m skillgauge.main
    - ASGI server: uvicorn skillgauge.main:app
"""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from skillgauge import __version__
from skillgauge.api import main_router, register_exception_handlers
from skillgauge.common.logger import app_logger
from skillgauge.config import settings
from skillgauge.database.init_db import init_db
from skillgauge.domain.workers.schema import discover_worker_columns

# Setup module logger
logger = app_logger.getChild("main")


def create_app(bind: Optional[Engine] = None, initialize: bool = True) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        bind: Engine prepared on startup; defaults to the application engine
        initialize: Whether startup creates missing tables and seeds roles

    Returns:
        The configured application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = bind
        if engine is None:
            from skillgauge.common.db.session import engine
        if initialize:
            init_db(engine)
        app.state.worker_columns = discover_worker_columns(engine)
        logger.info("Application startup complete")
        yield
        logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="API for SkillGauge worker registration and assessments",
        version=__version__,
        lifespan=lifespan
    )
    app.state.worker_columns = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(main_router, prefix=settings.API_PREFIX)

    logger.info("Application initialized with %d routes", len(app.routes))
    return app


app = create_app()


# Entry point for running the application directly
if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))
    reload_enabled = os.environ.get("RELOAD", "false").lower() == "true"

    logger.info("Starting server on %s:%d (reload: %s)", host, port, reload_enabled)

    uvicorn.run(
        "skillgauge.main:app",
        host=host,
        port=port,
        reload=reload_enabled,
        log_level="info"
    )
