"""Change Validation — pure per-type required-field check over a change list.

Invariants:
    - Only supported change types are checked; UNSUPPORTED is the dispatcher's call
    - Required fields come from domain_types.REQUIRED_FIELDS
    - Blank (whitespace-only) values count as empty
    - Returns every problem found, in change order; never raises
"""

from dataclasses import dataclass
from typing import Protocol, Sequence

from appwizard.core.domain_types import REQUIRED_FIELDS, ChangeType


class ChangeLike(Protocol):
    """Structural contract for change descriptors (schemas.pipeline.ChangeDescriptor)."""
    raw_change_type: str
    location: str
    item_name: str
    new_value: str
    object_name: str

    @property
    def change_type(self) -> ChangeType: ...


@dataclass(frozen=True)
class ChangeProblem:
    change_index: int
    field_name: str
    message: str


def validate_change(change: ChangeLike, index: int) -> list[ChangeProblem]:
    """Check one change for empty required fields."""
    required = REQUIRED_FIELDS.get(change.change_type, ())
    return [
        ChangeProblem(
            change_index=index,
            field_name=name,
            message=(
                f"Change #{index} ({change.raw_change_type}) "
                f"requires a non-empty {name}"
            ),
        )
        for name in required
        if not str(getattr(change, name) or "").strip()
    ]


def validate_changes(changes: Sequence[ChangeLike]) -> list[ChangeProblem]:
    problems: list[ChangeProblem] = []
    for i, change in enumerate(changes):
        problems.extend(validate_change(change, i))
    return problems
