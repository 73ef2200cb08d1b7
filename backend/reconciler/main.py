"""Event Completion Service — FastAPI application entry point.

Invariants:
    - Invalid configuration aborts startup (ConfigurationError from the lifespan)
    - The completion service is started after the database and stopped before it is closed
    - The database is closed on every exit path, including a service that fails to build
    - Shutdown waits for the in-flight pass to finish
    - Routes registered explicitly (no auto-discovery)

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Service stored on app.state, not a module global: routes read it per request
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from reconciler.api.error_handlers import register_error_handlers
from reconciler.api.routes import health, sweeps
from reconciler.config import load_settings
from reconciler.infrastructure.database import close_db, init_db
from reconciler.infrastructure.observability import setup_logging
from reconciler.services.event_completion_service import EventCompletionService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )

    service = None
    try:
        if settings.event_sweep_enabled:
            service = EventCompletionService.from_settings(
                settings, manager.status_store,
            )
            await service.start()
        else:
            logger.info("Event completion sweep disabled by configuration")
        app.state.completion_service = service
        logger.info("Event completion service started")
        yield
    finally:
        if service is not None:
            await service.stop()
        app.state.completion_service = None
        await close_db()
        logger.info("Event completion service stopped")


app = FastAPI(
    title="Event Completion Service", version="1.0.0", lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(sweeps.router)

register_error_handlers(app)
