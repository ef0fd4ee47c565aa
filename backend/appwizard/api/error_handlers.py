"""Error Handlers — every escaped exception leaves the API as a {statusCode, body} envelope.

Invariants:
    - AppWizardError → 500 envelope; body is the stage-tagged message, "error" carries
      code, stage and identifying context
    - RequestValidationError → 400 envelope naming the invalid fields, with
      field-level details under "error"
    - Any other exception → 500 envelope with a fixed body; internals never leak

Design Decisions:
    - Same envelope as the pipeline outcome, so callers parse one shape
    - Extracted from main.py to keep the entry point thin
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from appwizard.core.errors import AppWizardError

logger = logging.getLogger(__name__)

UNEXPECTED_BODY = "An unexpected error occurred"


def _envelope(status_code: int, body: str, error: dict | None = None) -> JSONResponse:
    content: dict = {"statusCode": status_code, "body": body}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content)


def _field_path(loc) -> str:
    return ".".join(str(part) for part in loc)


async def _on_pipeline_error(request: Request, exc: AppWizardError) -> JSONResponse:
    logger.error(
        f"Pipeline error escaped on {request.url.path}: {exc.describe()}",
        extra={"error_code": exc.code, "stage": exc.stage, "path": request.url.path},
    )
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        exc.describe(),
        exc.to_response()["error"],
    )


async def _on_invalid_request(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {"field": _field_path(e["loc"]), "message": e["msg"], "type": e["type"]}
        for e in exc.errors()
    ]
    fields = ", ".join(d["field"] for d in details)
    logger.warning(
        f"Invalid request on {request.url.path}: {fields}",
        extra={"path": request.url.path},
    )
    return _envelope(
        status.HTTP_400_BAD_REQUEST,
        f"Invalid request: {fields}",
        {"code": "VALIDATION_ERROR", "category": "validation", "details": details},
    )


async def _on_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        extra={"path": request.url.path},
        exc_info=True,
    )
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, UNEXPECTED_BODY)


def register_error_handlers(app: FastAPI) -> None:
    """Register the three global handlers: domain, validation, catch-all."""
    app.add_exception_handler(AppWizardError, _on_pipeline_error)
    app.add_exception_handler(RequestValidationError, _on_invalid_request)
    app.add_exception_handler(Exception, _on_unexpected)
