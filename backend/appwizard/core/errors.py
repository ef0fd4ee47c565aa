"""Error Hierarchy — typed, stage-tagged exceptions for every pipeline failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), stage (str)
    - stage names the step that failed: fetch/transform/delete/put, lookup/load/
      search/delete/fetch/create, open/flush/export/cleanup, get/put
    - to_response() produces the REST error envelope; describe() the one-line
      message used in the pipeline's 500 body
    - No credentials or tokens in messages

Design Decisions:
    - Single hierarchy with AppWizardError base: the dispatcher and the FastAPI
      handlers catch one type (ADR: uniform error shape)
    - ModelLookupError also subclasses builtin LookupError so callers can
      treat "collection not found" like any other missing key
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    SESSION = "session"
    FILE_IO = "file_io"
    TRANSFORM = "transform"
    RESOURCE_NOT_FOUND = "resource_not_found"
    STORAGE = "storage"
    EXTERNAL_API = "external_api"


@dataclass
class ErrorContext:
    """Identifying context for the failing operation."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    change_index: int | None = None
    location: str | None = None
    item_name: str | None = None
    debug_info: dict[str, Any] | None = None


class AppWizardError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        stage: str,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.stage = stage
        self.context = context or ErrorContext()
        self.http_status = http_status

    def describe(self) -> str:
        """One-line message naming the stage, used as the failure body."""
        return f"[{self.stage}] {self.message}"

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "stage": self.stage,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "request_id": self.context.request_id,
                    "change_index": self.context.change_index,
                    "location": self.context.location,
                    "item_name": self.context.item_name,
                },
            }
        }


# ─── Pipeline Errors ─────────────────────────────────────────────

class SessionError(AppWizardError):
    """Model session lifecycle failed (open, flush, export, cleanup)."""
    def __init__(self, message: str, stage: str, context: ErrorContext | None = None):
        super().__init__(
            message, "SESSION_ERROR", ErrorCategory.SESSION, stage, context,
        )


class FileIOError(AppWizardError):
    """Reading, writing or deleting a model resource failed."""
    def __init__(
        self, message: str, stage: str, location: str,
        context: ErrorContext | None = None,
    ):
        if context is None:
            ctx = ErrorContext(location=location)
        else:
            ctx = replace(context, location=context.location or location)
        super().__init__(
            message, "FILE_IO_ERROR", ErrorCategory.FILE_IO, stage, ctx,
        )
        self.location = location


class PatchError(AppWizardError):
    """Text transform of a model resource failed."""
    def __init__(
        self, message: str, variable_name: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "PATCH_ERROR", ErrorCategory.TRANSFORM, "transform", context,
        )
        self.variable_name = variable_name


class ModelLookupError(AppWizardError, LookupError):
    """A collection or asset required by a change does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "LOOKUP_ERROR", ErrorCategory.RESOURCE_NOT_FOUND, "lookup",
            context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class StorageError(AppWizardError):
    """Blob store get/put failed."""
    def __init__(
        self,
        message: str,
        stage: str,
        container: str,
        key: str,
        reason: str = "backend",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, "STORAGE_ERROR", ErrorCategory.STORAGE, stage, context,
        )
        self.container = container
        self.key = key
        self.reason = reason


class ChangeValidationError(AppWizardError):
    """A change descriptor is missing a field its type requires."""
    def __init__(self, message: str, field_name: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CHANGE_VALIDATION_ERROR", ErrorCategory.VALIDATION,
            "validate", context, 400,
        )
        self.field_name = field_name


class UnsupportedChangeError(AppWizardError):
    """Change type is not one this pipeline can apply."""
    def __init__(self, raw_type: str, context: ErrorContext | None = None):
        super().__init__(
            f"Unsupported change type '{raw_type}'",
            "UNSUPPORTED_CHANGE", ErrorCategory.VALIDATION, "dispatch",
            context, 400,
        )
        self.raw_type = raw_type


# ─── Infrastructure Errors ───────────────────────────────────────

class PlatformAPIError(AppWizardError):
    """Model-hosting platform call failed at the transport level."""
    def __init__(
        self,
        message: str,
        operation: str,
        status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Platform {operation} failed: {message}",
            "PLATFORM_API_ERROR", ErrorCategory.EXTERNAL_API, operation,
            context, 502,
        )
        self.operation = operation
        self.status_code = status_code
