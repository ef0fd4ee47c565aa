"""Domain Types — closed enums for change types, image formats and session states.

Invariants:
    - ChangeType and ImageFormat are closed: unknown wire values map to an
      explicit branch (UNSUPPORTED / UNKNOWN), never to an exception
    - ChangeType wire values match the request JSON exactly (case-sensitive)
    - REQUIRED_FIELDS is the single source of truth for per-type validation

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
    - parse() classmethods over Enum(...) lookups so the fallback branch is explicit
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

AppId = NewType("AppId", str)
ObjectKey = NewType("ObjectKey", str)
ContainerId = NewType("ContainerId", str)


# ─── Enums ───────────────────────────────────────────────────────

class ChangeType(str, Enum):
    """Change descriptor kinds. UNSUPPORTED is the explicit fallback branch."""
    TEXT_VARIABLE = "CSS_Variable_Change"
    IMAGE_COLLECTION_IMAGE = "ImageCollection_Image_Change"
    UNSUPPORTED = "Unsupported"

    @classmethod
    def parse(cls, value: str | None) -> "ChangeType":
        for member in (cls.TEXT_VARIABLE, cls.IMAGE_COLLECTION_IMAGE):
            if value == member.value:
                return member
        return cls.UNSUPPORTED


class ImageFormat(str, Enum):
    """Image formats accepted by the model platform."""
    BMP = "BMP"
    GIF = "GIF"
    JPG = "JPG"
    PNG = "PNG"
    SVG = "SVG"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str | None) -> "ImageFormat":
        """Exact match on the wire string; anything else is UNKNOWN."""
        for member in cls:
            if member is not cls.UNKNOWN and value == member.value:
                return member
        return cls.UNKNOWN


class SessionState(str, Enum):
    """ModelSession lifecycle: CLOSED → OPENING → OPEN → FLUSHING → EXPORTING → CLOSED."""
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    FLUSHING = "flushing"
    EXPORTING = "exporting"
    FAILED = "failed"


# Fields that must be non-empty for each supported change type
REQUIRED_FIELDS: dict[ChangeType, tuple[str, ...]] = {
    ChangeType.TEXT_VARIABLE: ("location", "item_name", "new_value"),
    ChangeType.IMAGE_COLLECTION_IMAGE: ("location", "item_name", "object_name"),
}
