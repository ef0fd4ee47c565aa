"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings; local blob backend works without AWS
"""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Model-hosting platform
    platform_base_url: str = "https://model.api.example.invalid/v1"
    platform_api_token: str = "pat-placeholder"
    platform_timeout_seconds: float = 120.0
    source_branch: str = "main"

    @field_validator("platform_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # Blob store
    blob_backend: Literal["s3", "local"] = "s3"
    local_blob_root: str = "./blobs"
    aws_region: str | None = None
    s3_endpoint_url: str | None = None

    # Pipeline
    scratch_root: str | None = None
    reject_unsupported_changes: bool = False

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
