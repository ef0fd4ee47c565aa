"""Client Registry — builds the platform and blob-store clients from settings.

Invariants:
    - One HttpModelPlatform and one BlobStore per process, created on startup
    - close_clients() releases the httpx connection pool
    - blob_backend selects S3BlobStore ("s3") or LocalBlobStore ("local")

Design Decisions:
    - Module-level singletons initialized by FastAPI lifespan, mirroring a
      DB session manager (no global import side effects)
"""

import logging

from appwizard.config import Settings
from appwizard.core.platform_protocols import BlobStore
from appwizard.infrastructure.local_blob_store import LocalBlobStore
from appwizard.infrastructure.model_platform_client import HttpModelPlatform
from appwizard.infrastructure.s3_blob_store import S3BlobStore

logger = logging.getLogger(__name__)


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.blob_backend == "local":
        logger.info(f"Using local blob store at {settings.local_blob_root}")
        return LocalBlobStore(settings.local_blob_root)
    return S3BlobStore(
        region_name=settings.aws_region, endpoint_url=settings.s3_endpoint_url,
    )


def build_model_platform(settings: Settings) -> HttpModelPlatform:
    return HttpModelPlatform(
        settings.platform_base_url,
        settings.platform_api_token,
        timeout_seconds=settings.platform_timeout_seconds,
    )


# Singletons (initialized on startup)
model_platform: HttpModelPlatform | None = None
blob_store: BlobStore | None = None


def init_clients(settings: Settings) -> None:
    global model_platform, blob_store
    model_platform = build_model_platform(settings)
    blob_store = build_blob_store(settings)


async def close_clients() -> None:
    global model_platform, blob_store
    if model_platform is not None:
        await model_platform.aclose()
    model_platform = None
    blob_store = None
