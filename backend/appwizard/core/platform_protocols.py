"""Boundary Protocols — contracts between the pipeline and its external collaborators.

Invariants:
    - Services never import a concrete platform or blob client
    - All IO operations accessed through Protocol types
    - Implementations provided by infrastructure via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: every boundary method does IO; blocking SDKs are
      wrapped with asyncio.to_thread by the implementation, not the caller
"""

from pathlib import Path
from typing import Protocol, Sequence

from appwizard.core.domain_types import ImageFormat


# ─── Model platform ──────────────────────────────────────────────

class ImageHandle(Protocol):
    """A fully loaded image inside a collection."""
    name: str

    async def delete(self) -> None: ...


class ImageRef(Protocol):
    """Unloaded reference to an image, as listed by its collection."""
    name: str

    async def load(self) -> ImageHandle: ...


class ImageCollectionHandle(Protocol):
    """A loaded image collection with its materialised image list."""
    qualified_name: str
    images: Sequence[ImageRef]

    async def create_image(
        self, name: str, data: bytes, image_format: ImageFormat,
    ) -> None: ...


class ImageCollectionRef(Protocol):
    """Unloaded reference to an image collection."""
    qualified_name: str

    async def load(self) -> ImageCollectionHandle: ...


class ModelHandle(Protocol):
    """Open model of one working copy."""
    async def get_file(self, path: str) -> bytes: ...
    async def put_file(self, data: bytes, path: str) -> None: ...
    async def delete_file(self, path: str) -> None: ...
    async def all_image_collections(self) -> Sequence[ImageCollectionRef]: ...
    async def flush_changes(self) -> None: ...
    async def export_mpk(self, dest_path: Path) -> None: ...
    async def delete_working_copy(self) -> None: ...


class WorkingCopyHandle(Protocol):
    """Temporary working copy created from an app's branch."""
    working_copy_id: str

    async def open_model(self) -> ModelHandle: ...
    async def delete(self) -> None: ...


class AppHandle(Protocol):
    """Source application on the model-hosting platform."""
    app_id: str

    async def create_temporary_working_copy(
        self, branch: str,
    ) -> WorkingCopyHandle: ...


class ModelPlatform(Protocol):
    """Entry point to the model-hosting platform."""
    async def get_app(self, app_id: str) -> AppHandle: ...


# ─── Blob store ──────────────────────────────────────────────────

class BlobStore(Protocol):
    """Named binary blobs grouped by container (bucket).

    Implementations raise StorageError with reason not_found / access_denied /
    backend; they never return None for a missing object.
    """
    async def get_object(self, container: str, key: str) -> bytes: ...
    async def put_object(self, container: str, key: str, data: bytes) -> None: ...
