"""Local Blob Store — filesystem-backed BlobStore for development and tests.

Invariants:
    - Objects live at <root>/<container>/<key>; keys may contain "/"
    - Keys resolving outside <root>/<container> are rejected as access_denied
    - Missing file → not_found, PermissionError → access_denied, other OSError → backend
"""

import asyncio
import logging
from pathlib import Path

from appwizard.core.errors import StorageError

logger = logging.getLogger(__name__)


class LocalBlobStore:
    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def _path_for(self, container: str, key: str, stage: str) -> Path:
        base = (self.root / container).resolve()
        path = (base / key).resolve()
        if base != path and base not in path.parents:
            raise StorageError(
                f"Object key {key} escapes container {container}",
                stage, container, key, "access_denied",
            )
        return path

    async def get_object(self, container: str, key: str) -> bytes:
        path = self._path_for(container, key, "get")
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as e:
            raise StorageError(
                f"Cannot read object {key} from {container}: not_found",
                "get", container, key, "not_found",
            ) from e
        except PermissionError as e:
            raise StorageError(
                f"Cannot read object {key} from {container}: access_denied",
                "get", container, key, "access_denied",
            ) from e
        except OSError as e:
            logger.error(f"Local get {path} failed: {e}")
            raise StorageError(
                f"Cannot read object {key} from {container}",
                "get", container, key,
            ) from e

    async def put_object(self, container: str, key: str, data: bytes) -> None:
        path = self._path_for(container, key, "put")
        try:
            await asyncio.to_thread(self._write, path, data)
        except PermissionError as e:
            raise StorageError(
                f"Cannot write object {key} to {container}: access_denied",
                "put", container, key, "access_denied",
            ) from e
        except OSError as e:
            logger.error(f"Local put {path} failed: {e}")
            raise StorageError(
                f"Cannot write object {key} to {container}",
                "put", container, key,
            ) from e

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
