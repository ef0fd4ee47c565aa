"""Pipeline Results — explicit success / tagged-failure values per stage.

Invariants:
    - A DispatchResult is either ok (failure is None) or carries exactly one
      ChangeFailure: the first change that failed
    - changes_processed counts changes applied before the stop; skipped
      (unsupported) changes are counted separately
    - PipelineOutcome.body is the uploaded key on success, a message naming the
      failing stage and identifiers otherwise
    - Pure dataclasses: no IO
"""

from dataclasses import dataclass, field

from appwizard.core.errors import AppWizardError


@dataclass(frozen=True)
class ChangeFailure:
    """Identity of the failing change plus the tagged cause."""
    change_index: int
    change_type: str
    location: str
    item_name: str
    error: AppWizardError

    @property
    def stage(self) -> str:
        return self.error.stage

    def describe(self) -> str:
        return (
            f"Change #{self.change_index} {self.change_type} "
            f"({self.location}/{self.item_name}) failed at "
            f"{self.error.describe()}"
        )


@dataclass(frozen=True)
class DispatchResult:
    changes_processed: int
    changes_skipped: int = 0
    failure: ChangeFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass
class PipelineOutcome:
    """Final run result, mapped 1:1 onto the response envelope."""
    ok: bool
    body: str
    stage: str | None = None
    changes_processed: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def status_code(self) -> int:
        return 200 if self.ok else 500

    @classmethod
    def success(
        cls, object_key: str, changes_processed: int, warnings: list[str],
    ) -> "PipelineOutcome":
        return cls(
            ok=True, body=object_key,
            changes_processed=changes_processed, warnings=warnings,
        )

    @classmethod
    def failed(
        cls, message: str, stage: str, changes_processed: int = 0,
        warnings: list[str] | None = None,
    ) -> "PipelineOutcome":
        return cls(
            ok=False, body=message, stage=stage,
            changes_processed=changes_processed, warnings=warnings or [],
        )
