"""Change Dispatch — explicit routing from change type to mutator, strictly in order.

Invariants:
    - Changes are applied in list order; each handler is awaited before the next starts
    - First failure aborts: no later change is attempted, the result carries the
      failing change's index, type, location, item name and the tagged cause
    - UNSUPPORTED change types are skipped with a warning, or abort with
      UnsupportedChangeError when reject_unsupported is set
    - Only AppWizardError is converted into a ChangeFailure; anything else is a bug
      and propagates to the orchestrator

Design Decisions:
    - Explicit dict over getattr: every mapping visible in one place
      (adding a change type requires editing this dict)
    - Handlers instantiated per-run with the run's session, store and container
"""

import logging
from dataclasses import replace
from typing import Awaitable, Callable, Sequence

from appwizard.core.domain_types import ChangeType
from appwizard.core.errors import AppWizardError, ErrorContext, UnsupportedChangeError
from appwizard.core.pipeline_results import ChangeFailure, DispatchResult
from appwizard.schemas.pipeline import ChangeDescriptor
from appwizard.services.artifact_store import ArtifactStore
from appwizard.services.handle_image_collection import ImageCollectionMutator
from appwizard.services.handle_text_variable import TextVariablePatcher
from appwizard.services.model_session import ModelSession

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[ChangeDescriptor], Awaitable[object]]


class ChangeDispatcher:
    """Routes change_type -> handler. Explicit registration, no auto-discovery."""

    def __init__(
        self,
        session: ModelSession,
        store: ArtifactStore,
        storage_container: str,
        reject_unsupported: bool = False,
        context: ErrorContext | None = None,
    ):
        self._context = context or ErrorContext()
        self._reject_unsupported = reject_unsupported
        text = TextVariablePatcher(session, self._context)
        images = ImageCollectionMutator(
            session, store, storage_container, self._context,
        )

        self._handlers: dict[ChangeType, ChangeHandler] = {
            ChangeType.TEXT_VARIABLE: text.apply,
            ChangeType.IMAGE_COLLECTION_IMAGE: images.apply,
        }

    async def run(self, changes: Sequence[ChangeDescriptor]) -> DispatchResult:
        processed = 0
        skipped = 0
        for index, change in enumerate(changes):
            extra = {
                "request_id": self._context.request_id,
                "change_index": index,
                "change_type": change.raw_change_type,
                "location": change.location,
                "item_name": change.item_name,
            }
            logger.info(f"Process change #{index}: {change.summary()}", extra=extra)

            try:
                handler = self._resolve(change)
                if handler is None:
                    skipped += 1
                    continue
                await handler(change)
            except AppWizardError as e:
                e.context = replace(
                    e.context,
                    request_id=self._context.request_id,
                    change_index=index,
                    location=change.location,
                    item_name=change.item_name,
                )
                failure = ChangeFailure(
                    change_index=index,
                    change_type=change.raw_change_type,
                    location=change.location,
                    item_name=change.item_name,
                    error=e,
                )
                logger.error(
                    failure.describe(),
                    extra={**extra, "stage": e.stage, "error_code": e.code},
                )
                return DispatchResult(processed, skipped, failure)

            processed += 1
            logger.info(f"Change #{index} complete", extra=extra)

        return DispatchResult(processed, skipped)

    def _resolve(self, change: ChangeDescriptor) -> ChangeHandler | None:
        """Handler for the change, None to skip; raises when unsupported types are rejected."""
        change_type = change.change_type
        if change_type is ChangeType.UNSUPPORTED:
            if self._reject_unsupported:
                raise UnsupportedChangeError(change.raw_change_type, self._context)
            logger.warning(
                f"Skipping unsupported change type '{change.raw_change_type}'",
            )
            return None
        return self._handlers[change_type]
