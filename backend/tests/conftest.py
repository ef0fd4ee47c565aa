"""Root conftest — shared test configuration."""

import os

# Ensure tests don't accidentally use real credentials or cloud storage
os.environ.setdefault("PLATFORM_API_TOKEN", "pat-test-fake-token")
os.environ.setdefault("PLATFORM_BASE_URL", "http://platform.test/v1")
os.environ.setdefault("BLOB_BACKEND", "local")
os.environ.setdefault("LOG_FORMAT", "text")
