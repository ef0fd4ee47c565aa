"""Artifact Store — get/put of named blobs on behalf of the pipeline.

Invariants:
    - get() returns the stored bytes (possibly empty); it never returns None
    - Every failure surfaces as StorageError (stage "get" / "put"); backend errors
      that are not already StorageError are wrapped with reason "backend"
    - Used both for replacement image bytes and for the exported package upload
"""

import logging

from appwizard.core.errors import ErrorContext, StorageError
from appwizard.core.platform_protocols import BlobStore

logger = logging.getLogger(__name__)


class ArtifactStore:
    def __init__(self, backend: BlobStore):
        self._backend = backend

    async def get(
        self, container: str, key: str, context: ErrorContext | None = None,
    ) -> bytes:
        logger.info(
            f"Get object {key} from {container}",
            extra={"object_key": key},
        )
        try:
            data = await self._backend.get_object(container, key)
        except StorageError as e:
            if context:
                e.context = context
            raise
        except Exception as e:
            logger.error(f"Blob get {container}/{key} failed: {e}", exc_info=True)
            raise StorageError(
                f"Error getting object {key} from {container}",
                "get", container, key, context=context,
            ) from e
        return data if data is not None else b""

    async def put(
        self, container: str, key: str, data: bytes,
        context: ErrorContext | None = None,
    ) -> None:
        logger.info(
            f"Put object {key} to {container} ({len(data)} bytes)",
            extra={"object_key": key},
        )
        try:
            await self._backend.put_object(container, key, data)
        except StorageError as e:
            if context:
                e.context = context
            raise
        except Exception as e:
            logger.error(f"Blob put {container}/{key} failed: {e}", exc_info=True)
            raise StorageError(
                f"Error writing object {key} to {container}",
                "put", container, key, context=context,
            ) from e
