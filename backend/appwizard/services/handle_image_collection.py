"""Image Collection Handler — replaces a named image inside a qualified image collection.

Invariants:
    - Stages, in order: lookup → load → search → fetch → delete → create
    - lookup is an exact qualified-name match; absence raises ModelLookupError
    - Replacement bytes are fetched BEFORE the old image is deleted, so a missing
      or empty blob aborts the change without mutating the model
    - Replace is delete-then-create: at most one old image (first exact name match)
      is removed, exactly one new image is created with the same name
    - Unknown format strings map to ImageFormat.UNKNOWN (never an error)
    - Every failure is tagged with its stage: FileIOError for model-side steps,
      StorageError("fetch") for the blob step
"""

import logging
from typing import Sequence

from appwizard.core.domain_types import ImageFormat
from appwizard.core.errors import (
    ErrorContext, FileIOError, ModelLookupError, StorageError,
)
from appwizard.core.platform_protocols import (
    ImageCollectionHandle, ImageCollectionRef, ImageRef,
)
from appwizard.schemas.pipeline import ChangeDescriptor
from appwizard.services.artifact_store import ArtifactStore
from appwizard.services.model_session import ModelSession

logger = logging.getLogger(__name__)


def find_collection(
    collections: Sequence[ImageCollectionRef], qualified_name: str,
) -> ImageCollectionRef | None:
    return next((c for c in collections if c.qualified_name == qualified_name), None)


def find_image(images: Sequence[ImageRef], name: str) -> ImageRef | None:
    return next((i for i in images if i.name == name), None)


class ImageCollectionMutator:
    """Applies ImageCollection_Image_Change descriptors."""

    def __init__(
        self,
        session: ModelSession,
        store: ArtifactStore,
        storage_container: str,
        context: ErrorContext | None = None,
    ):
        self.session = session
        self.store = store
        self.storage_container = storage_container
        self._context = context or ErrorContext()

    async def apply(self, change: ChangeDescriptor) -> None:
        qualified_name = change.location
        item_name = change.item_name
        image_format = change.image_format

        collection = await self._load_collection(qualified_name)
        existing = self._search(collection, item_name)
        data = await self._fetch(change.object_name)

        if existing is not None:
            await self._delete(existing, qualified_name)

        await self._create(collection, item_name, data, image_format)
        logger.info(
            f"Image {item_name} in {qualified_name} replaced "
            f"({len(data)} bytes, {image_format.value})",
            extra={"location": qualified_name, "item_name": item_name},
        )

    async def _load_collection(self, qualified_name: str) -> ImageCollectionHandle:
        logger.info(
            f"Find image collection {qualified_name}",
            extra={"stage": "lookup", "location": qualified_name},
        )
        ref = find_collection(
            await self.session.all_image_collections(), qualified_name,
        )
        if ref is None:
            logger.error(f"Cannot find image collection {qualified_name}")
            raise ModelLookupError("Image collection", qualified_name, self._context)

        logger.info(
            f"Load image collection {qualified_name}",
            extra={"stage": "load", "location": qualified_name},
        )
        try:
            return await ref.load()
        except Exception as e:
            logger.error(f"Error loading image collection {qualified_name}: {e}")
            raise FileIOError(
                f"Error loading image collection {qualified_name}",
                "load", qualified_name, self._context,
            ) from e

    def _search(self, collection: ImageCollectionHandle, item_name: str) -> ImageRef | None:
        try:
            return find_image(collection.images, item_name)
        except Exception as e:
            logger.error(f"Error finding image {item_name}: {e}")
            raise FileIOError(
                f"Error finding image {item_name}",
                "search", collection.qualified_name, self._context,
            ) from e

    async def _fetch(self, object_name: str) -> bytes:
        container = self.storage_container
        logger.info(
            f"Get image object {object_name} from {container}",
            extra={"stage": "fetch", "object_key": object_name},
        )
        try:
            data = await self.store.get(container, object_name, self._context)
        except StorageError as e:
            raise StorageError(
                f"Error getting image object {object_name} from {container} "
                f"({e.reason})",
                "fetch", container, object_name, e.reason, self._context,
            ) from e
        if not data:
            logger.error(f"Image object {object_name} in {container} is empty")
            raise StorageError(
                f"Cannot load image object {object_name} from {container}: empty payload",
                "fetch", container, object_name, "empty", self._context,
            )
        return data

    async def _delete(self, existing: ImageRef, qualified_name: str) -> None:
        logger.info(
            f"Load/delete existing image {existing.name}",
            extra={"stage": "delete", "item_name": existing.name},
        )
        try:
            image = await existing.load()
            await image.delete()
        except Exception as e:
            logger.error(f"Error loading/deleting image {existing.name}: {e}")
            raise FileIOError(
                f"Error loading/deleting image {existing.name}",
                "delete", qualified_name, self._context,
            ) from e

    async def _create(
        self,
        collection: ImageCollectionHandle,
        item_name: str,
        data: bytes,
        image_format: ImageFormat,
    ) -> None:
        logger.info(
            f"Create image {item_name}",
            extra={"stage": "create", "item_name": item_name},
        )
        try:
            await collection.create_image(item_name, data, image_format)
        except Exception as e:
            logger.error(f"Error creating image {item_name}: {e}")
            raise FileIOError(
                f"Error creating image {item_name}",
                "create", collection.qualified_name, self._context,
            ) from e
