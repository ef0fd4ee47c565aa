"""Lambda Handler — function entry point taking the raw request event.

Invariants:
    - handler(event, context) always returns the {statusCode, body} envelope; it never raises
    - A malformed event is a 500 envelope naming the invalid fields, no session is opened
    - Invalid environment settings are a 500 "Invalid configuration" envelope
    - Clients are created per invocation and closed before returning
"""

import asyncio
import logging

from pydantic import ValidationError

from appwizard.config import Settings, get_settings
from appwizard.infrastructure.clients import build_blob_store, build_model_platform
from appwizard.infrastructure.observability import setup_logging
from appwizard.schemas.pipeline import PipelineRequest, PipelineResponse
from appwizard.services.artifact_store import ArtifactStore
from appwizard.services.pipeline_orchestrator import PipelineOrchestrator

logger = logging.getLogger(__name__)

INVALID_CONFIG_BODY = "Invalid configuration"


def _invalid_event_message(exc: ValidationError) -> str:
    fields = ", ".join(
        ".".join(str(loc) for loc in err["loc"]) or "<event>" for err in exc.errors()
    )
    return f"Invalid request: {fields}"


async def handle_event(
    event: dict, orchestrator: PipelineOrchestrator | None = None,
    settings: Settings | None = None,
) -> dict:
    """Validate the event and run one pipeline. Builds clients when none are given."""
    try:
        request = PipelineRequest.model_validate(event)
    except ValidationError as e:
        message = _invalid_event_message(e)
        logger.error(message)
        return PipelineResponse(status_code=500, body=message).to_wire()

    if orchestrator is not None:
        outcome = await orchestrator.run(request)
        return PipelineResponse(status_code=outcome.status_code, body=outcome.body).to_wire()

    settings = settings or get_settings()
    try:
        store = ArtifactStore(build_blob_store(settings))
        platform = build_model_platform(settings)
    except Exception as e:
        logger.error(f"Cannot create clients: {e}", exc_info=True)
        return PipelineResponse(
            status_code=500, body="Error creating platform or storage client",
        ).to_wire()

    async with platform:
        orchestrator = PipelineOrchestrator(
            platform,
            store,
            source_branch=settings.source_branch,
            reject_unsupported=settings.reject_unsupported_changes,
            scratch_root=settings.scratch_root,
        )
        outcome = await orchestrator.run(request)

    return PipelineResponse(status_code=outcome.status_code, body=outcome.body).to_wire()


def handler(event: dict, context: object = None) -> dict:
    """Synchronous entry point for function runtimes."""
    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        return PipelineResponse(status_code=500, body=INVALID_CONFIG_BODY).to_wire()
    setup_logging(settings.log_level, settings.log_format)
    return asyncio.run(handle_event(event, settings=settings))
