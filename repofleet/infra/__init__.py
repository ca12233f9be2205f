"""
Infrastructure layer for repofleet.

Contains abstractions for external systems:
- GitClient: Git command execution (clone, sparse checkout)
- ChangelogClient: git-cliff invocation
- run_process: The subprocess seam both clients share

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, expand_path_filters
from .changelog_client import ChangelogClient
from .process import OperationCancelled, run_process

__all__ = [
    'GitClient',
    'expand_path_filters',
    'ChangelogClient',
    'OperationCancelled',
    'run_process',
]
