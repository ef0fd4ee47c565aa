"""FastAPI dependencies — per-request PipelineOrchestrator over the process-wide clients."""

from fastapi import Depends

import appwizard.infrastructure.clients as clients
from appwizard.config import Settings, get_settings
from appwizard.services.artifact_store import ArtifactStore
from appwizard.services.pipeline_orchestrator import PipelineOrchestrator


def get_orchestrator(
    settings: Settings = Depends(get_settings),
) -> PipelineOrchestrator:
    if clients.model_platform is None or clients.blob_store is None:
        raise RuntimeError("Clients not initialized")
    return PipelineOrchestrator(
        clients.model_platform,
        ArtifactStore(clients.blob_store),
        source_branch=settings.source_branch,
        reject_unsupported=settings.reject_unsupported_changes,
        scratch_root=settings.scratch_root,
    )
