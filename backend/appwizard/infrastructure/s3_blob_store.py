"""S3 Blob Store — boto3-backed BlobStore with error mapping.

Invariants:
    - Every boto3 call runs in a worker thread (asyncio.to_thread); the caller awaits it
    - NoSuchKey / NoSuchBucket / 404 → StorageError(reason="not_found")
    - AccessDenied / 403 → StorageError(reason="access_denied")
    - Any other ClientError or BotoCoreError → StorageError(reason="backend")
    - No retries beyond botocore's own transport defaults
"""

import asyncio
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from appwizard.core.errors import StorageError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "NotFound", "404"})
_ACCESS_DENIED_CODES = frozenset({"AccessDenied", "Forbidden", "403"})


def _reason_for(error: ClientError) -> str:
    code = str(error.response.get("Error", {}).get("Code", ""))
    if code in _NOT_FOUND_CODES:
        return "not_found"
    if code in _ACCESS_DENIED_CODES:
        return "access_denied"
    return "backend"


class S3BlobStore:
    """BlobStore over an S3 (or S3-compatible) endpoint."""

    def __init__(
        self,
        client=None,
        region_name: str | None = None,
        endpoint_url: str | None = None,
    ):
        self.client = client or boto3.client(
            "s3", region_name=region_name, endpoint_url=endpoint_url,
        )

    async def get_object(self, container: str, key: str) -> bytes:
        try:
            return await asyncio.to_thread(self._get_object_sync, container, key)
        except ClientError as e:
            reason = _reason_for(e)
            logger.error(f"S3 get {container}/{key} failed ({reason}): {e}")
            raise StorageError(
                f"Cannot read object {key} from {container}: {reason}",
                "get", container, key, reason,
            ) from e
        except BotoCoreError as e:
            logger.error(f"S3 get {container}/{key} failed: {e}")
            raise StorageError(
                f"Cannot read object {key} from {container}",
                "get", container, key,
            ) from e

    async def put_object(self, container: str, key: str, data: bytes) -> None:
        try:
            await asyncio.to_thread(
                self.client.put_object, Bucket=container, Key=key, Body=data,
            )
        except ClientError as e:
            reason = _reason_for(e)
            logger.error(f"S3 put {container}/{key} failed ({reason}): {e}")
            raise StorageError(
                f"Cannot write object {key} to {container}: {reason}",
                "put", container, key, reason,
            ) from e
        except BotoCoreError as e:
            logger.error(f"S3 put {container}/{key} failed: {e}")
            raise StorageError(
                f"Cannot write object {key} to {container}",
                "put", container, key,
            ) from e

    def _get_object_sync(self, container: str, key: str) -> bytes:
        response = self.client.get_object(Bucket=container, Key=key)
        body = response.get("Body")
        if body is None:
            return b""
        try:
            return body.read()
        finally:
            body.close()
