"""Export Pipeline Route — runs one change-application pipeline per request.

Invariants:
    - Body is the wire-shaped PipelineRequest (TemplateAppId, Changes, ...)
    - Response is always the {statusCode, body} envelope; the HTTP status matches statusCode
    - The route holds no logic beyond envelope mapping; the run itself is synchronous
      from the caller's view (the request returns when the pipeline finishes)
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from appwizard.api.dependencies import get_orchestrator
from appwizard.schemas.pipeline import PipelineRequest, PipelineResponse
from appwizard.services.pipeline_orchestrator import PipelineOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/exports", tags=["exports"])


@router.post("", response_model=PipelineResponse)
async def run_export(
    body: PipelineRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Apply the request's changes to a working copy and upload the exported package."""
    outcome = await orchestrator.run(body)
    response = PipelineResponse(status_code=outcome.status_code, body=outcome.body)
    return JSONResponse(
        status_code=outcome.status_code, content=response.to_wire(),
    )
