"""Service test fixtures — fake platform, fake blob store and an open ModelSession.

Invariants:
    - Every test gets a fresh FakeModel with one SCSS file and one image collection
    - open_session yields a session already in OPEN state; its working copy is
      deleted when the fixture exits
    - client talks to the FastAPI app in-process with get_orchestrator overridden
      to run over the fakes
"""

import pytest
from httpx import ASGITransport, AsyncClient

from appwizard.api.dependencies import get_orchestrator
from appwizard.core.domain_types import ImageFormat
from appwizard.main import app
from appwizard.services.artifact_store import ArtifactStore
from appwizard.services.model_session import ModelSession
from appwizard.services.pipeline_orchestrator import PipelineOrchestrator

from tests.services.fakes import (
    BUCKET, COLLECTION, THEME_FILE, THEME_SCSS,
    FakeBlobStore, FakeModel, FakePlatform, StoredImage,
)


@pytest.fixture
def fake_model():
    return FakeModel(
        files={THEME_FILE: THEME_SCSS},
        collections={
            COLLECTION: [
                StoredImage("logo", b"old-logo", ImageFormat.PNG),
                StoredImage("banner", b"old-banner", ImageFormat.JPG),
            ],
            "MyFirstModule.Icons": [],
        },
    )


@pytest.fixture
def platform(fake_model):
    return FakePlatform(fake_model)


@pytest.fixture
def blob_store():
    return FakeBlobStore({(BUCKET, "logo2.png"): b"\x89PNG-new-logo"})


@pytest.fixture
def store(blob_store):
    return ArtifactStore(blob_store)


@pytest.fixture
async def open_session(platform):
    async with ModelSession.opened(platform, "app-1") as session:
        yield session


@pytest.fixture
def orchestrator(platform, store, tmp_path):
    return PipelineOrchestrator(platform, store, scratch_root=str(tmp_path))


@pytest.fixture
async def client(orchestrator):
    """FastAPI test client with the orchestrator dependency overridden."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()
