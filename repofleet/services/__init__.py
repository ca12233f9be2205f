"""
Service layer for repofleet.

Contains business logic that orchestrates domain objects and infrastructure:
- SparseFetchService: Clone-or-skip of many remote repositories
- ChangelogService: Changelog generation across local repositories

Services are the primary API for commands to use.
They handle coordination between infrastructure and domain layers.
"""

from .fetch_service import ExistingDirectoryPolicy, FetchOptions, SparseFetchService, fetch_all
from .changelog_service import ChangelogOptions, ChangelogService, generate_all

__all__ = [
    'ExistingDirectoryPolicy',
    'FetchOptions',
    'SparseFetchService',
    'fetch_all',
    'ChangelogOptions',
    'ChangelogService',
    'generate_all',
]
