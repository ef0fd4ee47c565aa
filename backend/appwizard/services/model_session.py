"""Model Session — lifecycle wrapper around one temporary working copy and its open model.

Invariants:
    - State machine: CLOSED → OPENING → OPEN → FLUSHING → EXPORTING → CLOSED;
      a failed open / flush / export moves the session to FAILED
    - File and collection operations are only legal in OPEN
    - Every platform failure is re-raised as a tagged error:
        open/flush/export/cleanup → SessionError
        get_file → FileIOError("fetch"), delete_file → ("delete"), put_file → ("put")
        all_image_collections → SessionError("lookup")
    - opened() deletes the working copy on every exit path once it exists;
      a cleanup failure is logged and kept on cleanup_error, never raised over
      the original exception

Design Decisions:
    - Explicit session handle passed to every mutator (no module-level client)
    - Cleanup failure does not invalidate an export already written to disk
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Sequence

from appwizard.core.domain_types import SessionState
from appwizard.core.errors import (
    ErrorContext, FileIOError, SessionError,
)
from appwizard.core.platform_protocols import (
    ImageCollectionRef, ModelHandle, ModelPlatform, WorkingCopyHandle,
)

logger = logging.getLogger(__name__)


class ModelSession:
    """Owns exactly one working copy and one open model for a pipeline run."""

    def __init__(
        self,
        platform: ModelPlatform,
        app_id: str,
        branch: str = "main",
        context: ErrorContext | None = None,
    ):
        self._platform = platform
        self.app_id = app_id
        self.branch = branch
        self._context = context or ErrorContext()
        self.state = SessionState.CLOSED
        self._working_copy: WorkingCopyHandle | None = None
        self._model: ModelHandle | None = None
        self.working_copy_deleted = False
        self.exported_path: Path | None = None
        self.cleanup_error: SessionError | None = None

    @classmethod
    @asynccontextmanager
    async def opened(
        cls,
        platform: ModelPlatform,
        app_id: str,
        branch: str = "main",
        context: ErrorContext | None = None,
    ) -> AsyncIterator["ModelSession"]:
        """Open a session; the working copy is deleted on exit, success or failure."""
        session = cls(platform, app_id, branch, context)
        try:
            await session.open()
            yield session
        finally:
            await session.close()

    @property
    def working_copy_id(self) -> str | None:
        return self._working_copy.working_copy_id if self._working_copy else None

    def _extra(self, **fields) -> dict:
        return {"request_id": self._context.request_id, **fields}

    def _require(self, *states: SessionState, stage: str = "state") -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SessionError(
                f"Operation requires session state {allowed}, "
                f"current state is {self.state.value}",
                stage, self._context,
            )

    def _require_model(self) -> ModelHandle:
        self._require(SessionState.OPEN)
        assert self._model is not None
        return self._model

    # ─── Opening ─────────────────────────────────────────────────

    async def open(self) -> None:
        self._require(SessionState.CLOSED)
        self.state = SessionState.OPENING
        try:
            logger.info(f"Get app {self.app_id}", extra=self._extra(stage="open"))
            app = await self._platform.get_app(self.app_id)

            logger.info(
                f"Create temporary working copy from {self.branch}",
                extra=self._extra(stage="open"),
            )
            self._working_copy = await app.create_temporary_working_copy(self.branch)

            logger.info(
                f"Open model of working copy {self._working_copy.working_copy_id}",
                extra=self._extra(stage="open"),
            )
            self._model = await self._working_copy.open_model()
        except Exception as e:
            self.state = SessionState.FAILED
            logger.error(
                f"Error opening app {self.app_id}: {e}",
                extra=self._extra(stage="open"),
            )
            raise SessionError(
                f"Error opening app {self.app_id}", "open", self._context,
            ) from e
        self.state = SessionState.OPEN

    # ─── Open: files and collections ─────────────────────────────

    async def get_file(self, location: str) -> bytes:
        model = self._require_model()
        try:
            return await model.get_file(location)
        except Exception as e:
            logger.error(
                f"Error getting file {location}: {e}",
                extra=self._extra(stage="fetch", location=location),
            )
            raise FileIOError(
                f"Error getting file {location} from model {self.app_id}",
                "fetch", location, self._context,
            ) from e

    async def put_file(self, data: bytes, location: str) -> None:
        model = self._require_model()
        try:
            await model.put_file(data, location)
        except Exception as e:
            logger.error(
                f"Error putting file {location}: {e}",
                extra=self._extra(stage="put", location=location),
            )
            raise FileIOError(
                f"Error putting file to {location}", "put", location, self._context,
            ) from e

    async def delete_file(self, location: str) -> None:
        model = self._require_model()
        try:
            await model.delete_file(location)
        except Exception as e:
            logger.error(
                f"Error deleting file {location}: {e}",
                extra=self._extra(stage="delete", location=location),
            )
            raise FileIOError(
                f"Error deleting file {location}", "delete", location, self._context,
            ) from e

    async def all_image_collections(self) -> Sequence[ImageCollectionRef]:
        model = self._require_model()
        try:
            return await model.all_image_collections()
        except Exception as e:
            logger.error(
                f"Error listing image collections: {e}",
                extra=self._extra(stage="lookup"),
            )
            raise SessionError(
                "Error listing image collections", "lookup", self._context,
            ) from e

    # ─── Flushing / Exporting ────────────────────────────────────

    async def flush(self) -> None:
        model = self._require_model()
        self.state = SessionState.FLUSHING
        try:
            logger.info("Flushing changes", extra=self._extra(stage="flush"))
            await model.flush_changes()
        except Exception as e:
            self.state = SessionState.FAILED
            logger.error(f"Error flushing changes: {e}", extra=self._extra(stage="flush"))
            raise SessionError("Error flushing changes", "flush", self._context) from e

    async def export(self, dest_path: Path) -> Path:
        self._require(SessionState.FLUSHING)
        assert self._model is not None
        self.state = SessionState.EXPORTING
        try:
            logger.info(f"Export package to {dest_path}", extra=self._extra(stage="export"))
            await self._model.export_mpk(dest_path)
        except Exception as e:
            self.state = SessionState.FAILED
            logger.error(f"Error exporting package: {e}", extra=self._extra(stage="export"))
            raise SessionError("Error exporting mpk", "export", self._context) from e
        self.exported_path = dest_path
        return dest_path

    # ─── Closing ─────────────────────────────────────────────────

    async def delete_working_copy(self) -> None:
        """Delete the working copy. No-op if none was created or it is already gone."""
        if self._working_copy is None or self.working_copy_deleted:
            self.state = SessionState.CLOSED
            return
        try:
            logger.info(
                f"Delete working copy {self.working_copy_id}",
                extra=self._extra(stage="cleanup"),
            )
            if self._model is not None:
                await self._model.delete_working_copy()
            else:
                await self._working_copy.delete()
        except Exception as e:
            logger.error(
                f"Error deleting working copy {self.working_copy_id}: {e}",
                extra=self._extra(stage="cleanup"),
            )
            raise SessionError(
                "Error deleting working copy", "cleanup", self._context,
            ) from e
        finally:
            self.state = SessionState.CLOSED
        self.working_copy_deleted = True

    async def close(self) -> None:
        """Release server-side resources; records, never raises, a cleanup failure."""
        try:
            await self.delete_working_copy()
        except SessionError as e:
            self.cleanup_error = e
