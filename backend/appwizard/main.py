"""AppWizard Export API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map AppWizardError → {statusCode, body} envelope
    - Platform and blob-store clients created on startup, closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from appwizard import __version__
from appwizard.api.error_handlers import register_error_handlers
from appwizard.api.routes import export_pipeline, health
from appwizard.config import get_settings
from appwizard.infrastructure.clients import close_clients, init_clients
from appwizard.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_clients(settings)
    logger.info("AppWizard export API started")
    yield
    await close_clients()
    logger.info("AppWizard export API shutting down")


app = FastAPI(
    title="AppWizard Export API", version=__version__, lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(export_pipeline.router)

register_error_handlers(app)
