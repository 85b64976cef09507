"""FastAPI application for the Mkulima Hub survey.

``create_app(settings)`` wires logging, CORS, the error handlers from
:mod:`mkulima_server.errors` and every router; the lifespan seeds an empty
``questions`` table from the YAML catalog and releases the connection
pool on shutdown.  ``mkulima-server`` (:func:`cli`) serves the module-level
``app`` with uvicorn.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mkulima_db.engine import dispose_engine, session_scope
from mkulima_survey.catalog import QuestionCatalog

from mkulima_server.config import ServerSettings, load_settings
from mkulima_server.errors import install_error_handlers
from mkulima_server.routes import register_routes
from mkulima_server.seed import seed_catalog

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Seed the catalog before serving; dispose the pool after."""
    settings: ServerSettings = app.state.settings
    if settings.seed_catalog:
        # Validate the YAML before touching the table
        catalog = QuestionCatalog.from_yaml(settings.catalog_path)
        async with session_scope() as db:
            await seed_catalog(db, catalog)
    else:
        logger.info("Catalog seeding disabled")

    yield

    await dispose_engine()
    logger.info("Database engine disposed")


def create_app(settings: ServerSettings | None = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO), format=LOG_FORMAT)

    app = FastAPI(
        title="Mkulima Hub API",
        description="Question catalog, survey submissions and analytics for Mkulima Hub",
        version="0.1.0",
        lifespan=lifespan,
    )
    # Read by the lifespan and by the get_settings dependency
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)
    register_routes(app)
    return app


# uvicorn mkulima_server.app:app
app = create_app()


def cli() -> None:
    """Console-script entry point: ``mkulima-server``."""
    import uvicorn

    settings = load_settings()
    logger.info("Serving on %s:%d", settings.host, settings.port)
    uvicorn.run(
        "mkulima_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
