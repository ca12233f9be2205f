"""
Domain layer for repofleet.

Contains pure domain objects with no I/O or side effects:
- RepositoryDescriptor: A remote repository to fetch
- LocalRepository: A repository directory on disk
- OperationOutcome: What happened to one repository during a run
- RunSummary: Totals folded from outcomes
"""

from .descriptor import RepositoryDescriptor, LocalRepository, derive_name
from .operation import (
    ErrorKind,
    OperationOutcome,
    OperationReport,
    OperationStatus,
    RunSummary,
    exit_code_for,
    summarize,
)

__all__ = [
    'RepositoryDescriptor',
    'LocalRepository',
    'derive_name',
    'ErrorKind',
    'OperationOutcome',
    'OperationReport',
    'OperationStatus',
    'RunSummary',
    'exit_code_for',
    'summarize',
]
