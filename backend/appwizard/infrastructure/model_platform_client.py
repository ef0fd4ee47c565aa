"""Model Platform Client — httpx REST adapter implementing the ModelPlatform protocol.

Invariants:
    - One httpx.AsyncClient per HttpModelPlatform; closed via aclose() / async with
    - Every call maps transport failures to PlatformAPIError(operation=...)
      (timeout, connection error, non-2xx status); status_code kept when known
    - No retries: a failed call surfaces immediately to the calling stage
    - Image bytes travel base64-encoded in JSON (imageData), as the platform stores them
    - Exported packages are streamed to disk, never buffered whole in memory;
      file writes run in a worker thread

Design Decisions:
    - Handles (app, working copy, model, collection, image) are thin objects holding
      ids + the shared transport; they carry no state beyond what the server returned
"""

import asyncio
import base64
import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

from appwizard.core.domain_types import ImageFormat
from appwizard.core.errors import PlatformAPIError

logger = logging.getLogger(__name__)


def _segment(value: str) -> str:
    """Encode a single URL path segment (qualified names contain dots, names may contain spaces)."""
    return quote(value, safe="")


class PlatformTransport:
    """Shared httpx transport with error mapping."""

    def __init__(
        self,
        base_url: str,
        api_token: str,
        timeout_seconds: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"MxToken {api_token}"},
            timeout=timeout_seconds,
            transport=transport,
        )

    async def request(
        self, method: str, url: str, operation: str, **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            raise PlatformAPIError("timeout", operation) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise PlatformAPIError(
                f"HTTP {status}", operation, status_code=status,
            ) from e
        except httpx.HTTPError as e:
            raise PlatformAPIError(f"connection error: {e}", operation) from e

    @staticmethod
    def json(response: httpx.Response, operation: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise PlatformAPIError("malformed JSON response", operation) from e

    async def download(self, url: str, operation: str, dest_path: Path) -> int:
        """Stream a response body into dest_path. Returns bytes written."""
        written = 0
        try:
            async with self.client.stream("GET", url) as response:
                response.raise_for_status()
                fh = await asyncio.to_thread(open, dest_path, "wb")
                try:
                    async for chunk in response.aiter_bytes():
                        await asyncio.to_thread(fh.write, chunk)
                        written += len(chunk)
                finally:
                    await asyncio.to_thread(fh.close)
        except httpx.TimeoutException as e:
            raise PlatformAPIError("timeout", operation) from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise PlatformAPIError(
                f"HTTP {status}", operation, status_code=status,
            ) from e
        except httpx.HTTPError as e:
            raise PlatformAPIError(f"connection error: {e}", operation) from e
        return written

    async def aclose(self) -> None:
        await self.client.aclose()


# ─── Handles ─────────────────────────────────────────────────────

class HttpImage:
    def __init__(self, transport: PlatformTransport, base: str, name: str, image_format: str):
        self._transport = transport
        self._url = f"{base}/images/{_segment(name)}"
        self.name = name
        self.image_format = ImageFormat.parse(image_format)

    async def delete(self) -> None:
        await self._transport.request("DELETE", self._url, "delete_image")


class HttpImageRef:
    def __init__(self, transport: PlatformTransport, base: str, name: str):
        self._transport = transport
        self._base = base
        self.name = name

    async def load(self) -> HttpImage:
        response = await self._transport.request(
            "GET", f"{self._base}/images/{_segment(self.name)}", "load_image",
        )
        data = self._transport.json(response, "load_image")
        return HttpImage(
            self._transport, self._base, data.get("name", self.name),
            data.get("imageFormat", ""),
        )


class HttpImageCollection:
    def __init__(self, transport: PlatformTransport, base: str, payload: dict):
        self._transport = transport
        self._base = base
        self.qualified_name = payload["qualifiedName"]
        self.images = [
            HttpImageRef(transport, base, img["name"])
            for img in payload.get("images", [])
        ]

    async def create_image(
        self, name: str, data: bytes, image_format: ImageFormat,
    ) -> None:
        await self._transport.request(
            "POST", f"{self._base}/images", "create_image",
            json={
                "name": name,
                "imageData": base64.b64encode(data).decode("ascii"),
                "imageFormat": image_format.value,
            },
        )


class HttpImageCollectionRef:
    def __init__(self, transport: PlatformTransport, wc_url: str, qualified_name: str):
        self._transport = transport
        self._base = f"{wc_url}/image-collections/{_segment(qualified_name)}"
        self.qualified_name = qualified_name

    async def load(self) -> HttpImageCollection:
        response = await self._transport.request(
            "GET", self._base, "load_image_collection",
        )
        payload = self._transport.json(response, "load_image_collection")
        return HttpImageCollection(self._transport, self._base, payload)


class HttpModel:
    """Open model of one working copy."""

    def __init__(self, transport: PlatformTransport, working_copy_id: str):
        self._transport = transport
        self._url = f"/working-copies/{_segment(working_copy_id)}"
        self.working_copy_id = working_copy_id

    async def get_file(self, path: str) -> bytes:
        response = await self._transport.request(
            "GET", f"{self._url}/files", "get_file", params={"path": path},
        )
        return response.content

    async def put_file(self, data: bytes, path: str) -> None:
        await self._transport.request(
            "PUT", f"{self._url}/files", "put_file",
            params={"path": path}, content=data,
            headers={"Content-Type": "application/octet-stream"},
        )

    async def delete_file(self, path: str) -> None:
        await self._transport.request(
            "DELETE", f"{self._url}/files", "delete_file", params={"path": path},
        )

    async def all_image_collections(self) -> list[HttpImageCollectionRef]:
        response = await self._transport.request(
            "GET", f"{self._url}/image-collections", "all_image_collections",
        )
        return [
            HttpImageCollectionRef(self._transport, self._url, c["qualifiedName"])
            for c in self._transport.json(response, "all_image_collections")
        ]

    async def flush_changes(self) -> None:
        await self._transport.request("POST", f"{self._url}/commit", "flush_changes")

    async def export_mpk(self, dest_path: Path) -> None:
        size = await self._transport.download(
            f"{self._url}/export", "export_mpk", dest_path,
        )
        logger.info(f"Exported {size} bytes to {dest_path}")

    async def delete_working_copy(self) -> None:
        await self._transport.request("DELETE", self._url, "delete_working_copy")


class HttpWorkingCopy:
    def __init__(self, transport: PlatformTransport, working_copy_id: str):
        self._transport = transport
        self.working_copy_id = working_copy_id

    async def open_model(self) -> HttpModel:
        await self._transport.request(
            "GET", f"/working-copies/{_segment(self.working_copy_id)}/model",
            "open_model",
        )
        return HttpModel(self._transport, self.working_copy_id)

    async def delete(self) -> None:
        await self._transport.request(
            "DELETE", f"/working-copies/{_segment(self.working_copy_id)}",
            "delete_working_copy",
        )


class HttpApp:
    def __init__(self, transport: PlatformTransport, app_id: str):
        self._transport = transport
        self.app_id = app_id

    async def create_temporary_working_copy(self, branch: str) -> HttpWorkingCopy:
        response = await self._transport.request(
            "POST", f"/apps/{_segment(self.app_id)}/working-copies",
            "create_temporary_working_copy",
            json={"branch": branch, "temporary": True},
        )
        payload = self._transport.json(response, "create_temporary_working_copy")
        return HttpWorkingCopy(self._transport, str(payload["id"]))


class HttpModelPlatform:
    """ModelPlatform over the platform's REST API."""

    def __init__(
        self,
        base_url: str,
        api_token: str,
        timeout_seconds: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._transport = PlatformTransport(
            base_url, api_token, timeout_seconds, transport,
        )

    async def get_app(self, app_id: str) -> HttpApp:
        response = await self._transport.request(
            "GET", f"/apps/{_segment(app_id)}", "get_app",
        )
        payload = self._transport.json(response, "get_app")
        return HttpApp(self._transport, str(payload.get("id", app_id)))

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> "HttpModelPlatform":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
