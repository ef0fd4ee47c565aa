"""Pipeline Orchestrator — validate → open → apply changes → flush → export → cleanup → upload.

Invariants:
    - Request validation runs before any session is opened; an invalid change
      fails the run without touching the platform
    - The working copy is deleted on every exit path (ModelSession.opened)
    - Upload happens only after a successful flush + export; a failure anywhere
      before it means no artifact is uploaded
    - A cleanup failure after a successful export is reported as a warning and
      does not fail the run
    - Scratch files live in a per-run temporary directory, removed on exit
    - Every failure becomes exactly one PipelineOutcome with a message naming the
      stage and identifiers; no partial-success reporting, no retry, no rollback
"""

import asyncio
import logging
import tempfile
from dataclasses import replace
from pathlib import Path

from appwizard.core.errors import (
    AppWizardError, ChangeValidationError, ErrorContext, StorageError,
)
from appwizard.core.pipeline_results import PipelineOutcome
from appwizard.core.platform_protocols import ModelPlatform
from appwizard.core.validate_changes import validate_changes
from appwizard.schemas.pipeline import PipelineRequest
from appwizard.services.artifact_store import ArtifactStore
from appwizard.services.change_dispatch import ChangeDispatcher
from appwizard.services.model_session import ModelSession

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "export.mpk"


class PipelineOrchestrator:
    """Owns the ModelSession lifecycle around one change-application run."""

    def __init__(
        self,
        platform: ModelPlatform,
        store: ArtifactStore,
        source_branch: str = "main",
        reject_unsupported: bool = False,
        scratch_root: str | None = None,
    ):
        self.platform = platform
        self.store = store
        self.source_branch = source_branch
        self.reject_unsupported = reject_unsupported
        self.scratch_root = scratch_root

    async def run(self, request: PipelineRequest) -> PipelineOutcome:
        ctx = ErrorContext(request_id=request.request_id)
        extra = {"request_id": request.request_id}
        logger.info(
            f"Export run for app {request.source_app_id} with "
            f"{len(request.changes)} change(s) -> {request.target_object_key}",
            extra=extra,
        )

        problems = validate_changes(request.changes)
        if problems:
            for problem in problems:
                logger.error(problem.message, extra={**extra, "change_index": problem.change_index})
            first = problems[0]
            error = ChangeValidationError(
                first.message, first.field_name,
                replace(ctx, change_index=first.change_index),
            )
            return PipelineOutcome.failed(error.describe(), error.stage)

        try:
            with tempfile.TemporaryDirectory(
                prefix="appwizard-", dir=self.scratch_root,
            ) as scratch:
                outcome = await self._run(request, ctx, Path(scratch))
        except AppWizardError as e:
            logger.error(
                f"Export run failed: {e.describe()}",
                extra={**extra, "stage": e.stage, "error_code": e.code},
            )
            return PipelineOutcome.failed(e.describe(), e.stage)
        except Exception as e:
            logger.error(f"Unexpected error in export run: {e}", extra=extra, exc_info=True)
            return PipelineOutcome.failed("Unexpected error during export run", "internal")

        if outcome.ok:
            logger.info(f"All done: {outcome.body}", extra=extra)
        return outcome

    async def _run(
        self, request: PipelineRequest, ctx: ErrorContext, scratch: Path,
    ) -> PipelineOutcome:
        export_path = scratch / EXPORT_FILENAME

        async with ModelSession.opened(
            self.platform, request.source_app_id, self.source_branch, ctx,
        ) as session:
            dispatcher = ChangeDispatcher(
                session, self.store, request.storage_container,
                self.reject_unsupported, ctx,
            )
            result = await dispatcher.run(request.changes)
            if result.failure is not None:
                return PipelineOutcome.failed(
                    result.failure.describe(), result.failure.stage,
                    result.changes_processed,
                )
            await session.flush()
            await session.export(export_path)

        warnings: list[str] = []
        if session.cleanup_error is not None:
            warnings.append(session.cleanup_error.describe())
            logger.warning(
                f"Export kept despite cleanup failure: {session.cleanup_error.describe()}",
                extra={"request_id": request.request_id, "stage": "cleanup"},
            )

        await self._upload(request, export_path, ctx)
        return PipelineOutcome.success(
            request.target_object_key, result.changes_processed, warnings,
        )

    async def _upload(
        self, request: PipelineRequest, export_path: Path, ctx: ErrorContext,
    ) -> None:
        container = request.storage_container
        key = request.target_object_key
        try:
            data = await asyncio.to_thread(export_path.read_bytes)
        except OSError as e:
            logger.error(f"Cannot read exported package {export_path}: {e}")
            raise StorageError(
                "Error reading exported package", "upload", container, key,
                context=ctx,
            ) from e
        await self.store.put(container, key, data, ctx)
