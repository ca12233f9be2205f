"""
Operation result domain objects for repofleet.

Every unit of work (one descriptor during a fetch, one directory during a
changelog run) produces exactly one immutable OperationOutcome. Totals are
never tracked with counters; RunSummary is folded from the outcomes after
the run, so it is safe to collect outcomes from worker threads.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from .descriptor import LocalRepository


class OperationStatus(Enum):
    """Status of an individual operation."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class ErrorKind(Enum):
    """Why an operation was skipped or failed."""
    ALREADY_EXISTS = "already_exists"
    TRANSPORT_FAILURE = "transport_failure"
    FILTER_CONFIG_FAILURE = "filter_config_failure"
    MATERIALIZATION_FAILURE = "materialization_failure"
    NOT_A_REPOSITORY = "not_a_repository"
    NO_COMMIT_HISTORY = "no_commit_history"
    GENERATOR_FAILURE = "generator_failure"
    ENUMERATION_FAILURE = "enumeration_failure"
    CANCELLED = "cancelled"


# Reason strings shown to users and emitted in JSONL output
REASON_ALREADY_EXISTS = "already exists"
REASON_CLONE_ERROR = "clone error"
REASON_SPARSE_ERROR = "sparse-checkout error"
REASON_CHECKOUT_ERROR = "checkout error"
REASON_NOT_A_REPOSITORY = "not a repository"
REASON_NO_COMMITS = "no commits"
REASON_GENERATION_ERROR = "generation error"
REASON_ENUMERATION_ERROR = "enumeration error"
REASON_CANCELLED = "cancelled"


@dataclass(frozen=True)
class OperationOutcome:
    """
    Result of a single operation on one repository.

    Used to track what happened to each repo during bulk operations.
    """
    name: str
    path: str
    status: OperationStatus
    reason: Optional[str] = None
    kind: Optional[ErrorKind] = None
    detail: Optional[str] = None  # captured tool output, if any
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, name: str, path: str, **metadata) -> 'OperationOutcome':
        return cls(name=name, path=path, status=OperationStatus.SUCCESS,
                   metadata=metadata)

    @classmethod
    def skipped(cls, name: str, path: str, reason: str,
                kind: Optional[ErrorKind] = None) -> 'OperationOutcome':
        return cls(name=name, path=path, status=OperationStatus.SKIPPED,
                   reason=reason, kind=kind)

    @classmethod
    def failed(cls, name: str, path: str, reason: str,
               kind: Optional[ErrorKind] = None,
               detail: Optional[str] = None) -> 'OperationOutcome':
        return cls(name=name, path=path, status=OperationStatus.FAILED,
                   reason=reason, kind=kind, detail=detail)

    @property
    def is_failure(self) -> bool:
        return self.status == OperationStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'name': self.name,
            'path': self.path,
            'status': self.status.value,
        }
        if self.reason:
            result['reason'] = self.reason
        if self.kind:
            result['kind'] = self.kind.value
        if self.detail:
            result['detail'] = self.detail
        if self.metadata:
            result.update(self.metadata)
        return result


@dataclass(frozen=True)
class RunSummary:
    """
    Totals derived from a sequence of outcomes.

    Build with RunSummary.from_outcomes(); the fields are never
    adjusted independently, so total == succeeded + failed + skipped.
    """
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[OperationOutcome]) -> 'RunSummary':
        succeeded = failed = skipped = 0
        for outcome in outcomes:
            if outcome.status == OperationStatus.SUCCESS:
                succeeded += 1
            elif outcome.status == OperationStatus.SKIPPED:
                skipped += 1
            else:
                failed += 1
        return cls(
            total=succeeded + failed + skipped,
            succeeded=succeeded,
            failed=failed,
            skipped=skipped,
        )

    @property
    def success(self) -> bool:
        """True if no failures occurred."""
        return self.failed == 0

    @property
    def exit_code(self) -> int:
        return exit_code_for(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'succeeded': self.succeeded,
            'failed': self.failed,
            'skipped': self.skipped,
        }


@dataclass(frozen=True)
class OperationReport:
    """
    Everything one orchestrator run produced.

    Outcomes are ordered like the input (descriptor list or sorted
    directory listing), regardless of the order workers finished in.
    """
    operation: str  # "fetch" or "changelog"
    outcomes: Tuple[OperationOutcome, ...] = ()
    repositories: Tuple[LocalRepository, ...] = ()
    summary: RunSummary = field(default_factory=RunSummary)

    @classmethod
    def build(cls, operation: str, outcomes: Iterable[OperationOutcome],
              repositories: Iterable[LocalRepository] = ()) -> 'OperationReport':
        outcomes = tuple(outcomes)
        return cls(
            operation=operation,
            outcomes=outcomes,
            repositories=tuple(repositories),
            summary=summarize(outcomes),
        )

    @property
    def errors(self) -> Tuple[str, ...]:
        """One "name: reason" line per failed outcome."""
        return tuple(
            f"{o.name}: {o.reason}" for o in self.outcomes if o.is_failure
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {'type': 'summary', 'operation': self.operation}
        result.update(self.summary.to_dict())
        result['errors'] = list(self.errors)
        return result


def summarize(outcomes: Iterable[OperationOutcome]) -> RunSummary:
    """Fold outcomes into a RunSummary."""
    return RunSummary.from_outcomes(outcomes)


def exit_code_for(summary: RunSummary) -> int:
    """Process exit code: 0 when nothing failed, 1 otherwise."""
    return 0 if summary.failed == 0 else 1
