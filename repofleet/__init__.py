"""
repofleet - Sparse fetches and changelogs across a fleet of repositories.

repofleet takes a list of remote repositories, materializes partial local
copies of them (only the configured paths, README.md and src/ by default)
and generates a changelog for every local copy with git-cliff.

Quick Start:
    from repofleet import RepositoryDescriptor, SparseFetchService, ChangelogService

    descriptors = [
        RepositoryDescriptor("git@github.com:org/ticker.git"),
        RepositoryDescriptor("git@github.com:org/iso20022.git"),
    ]

    fetcher = SparseFetchService(config={})
    for message in fetcher.fetch_all(descriptors, "cloned_repos", ["README.md", "src/"]):
        print(message)
    print(fetcher.last_result.summary)

    changelogs = ChangelogService(config={})
    for message in changelogs.generate_all("cloned_repos", "CHANGELOG.md"):
        print(message)

Both runs are idempotent and isolate failures: an existing checkout is
skipped, and one repository failing never stops the others. The process
exit code is 0 only when no repository failed.
"""

__version__ = "0.3.0"

# Domain objects
from .domain import (
    RepositoryDescriptor,
    LocalRepository,
    OperationOutcome,
    OperationReport,
    OperationStatus,
    ErrorKind,
    RunSummary,
    summarize,
    exit_code_for,
)

# Services
from .services import (
    SparseFetchService,
    FetchOptions,
    ChangelogService,
    ChangelogOptions,
    fetch_all,
    generate_all,
)

# Configuration
from .config import load_config, load_descriptors

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "RepositoryDescriptor",
    "LocalRepository",
    "OperationOutcome",
    "OperationReport",
    "OperationStatus",
    "ErrorKind",
    "RunSummary",
    "summarize",
    "exit_code_for",
    # Services
    "SparseFetchService",
    "FetchOptions",
    "ChangelogService",
    "ChangelogOptions",
    "fetch_all",
    "generate_all",
    # Configuration
    "load_config",
    "load_descriptors",
]
