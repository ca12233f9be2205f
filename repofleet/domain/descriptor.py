"""
Repository domain objects for repofleet.

A RepositoryDescriptor names one remote repository to fetch; a
LocalRepository is what ends up on disk under the target root.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional


def derive_name(identifier: str) -> str:
    """
    Derive the local directory name from a remote identifier.

    Takes the last path segment (``/`` or scp-style ``:`` separated)
    and strips a trailing ``.git``:

        git@github.com:org/ticker-archit.git -> ticker-archit
        https://example.com/org/tool/        -> tool
        host:repo.git                        -> repo
    """
    trimmed = identifier.strip().rstrip('/')
    base = trimmed.replace(':', '/').split('/')[-1]
    if base.endswith('.git'):
        base = base[:-len('.git')]
    return base


@dataclass(frozen=True)
class RepositoryDescriptor:
    """
    A remote repository to materialize locally.

    Attributes:
        identifier: Remote locator (ssh, https, file URL or local path)
        name: Optional explicit directory name, overriding the derived one
    """
    identifier: str
    name: Optional[str] = None

    def __post_init__(self):
        if not self.identifier or not self.identifier.strip():
            raise ValueError("Repository identifier must not be empty")
        if not self.derived_name:
            raise ValueError(f"Cannot derive a directory name from '{self.identifier}'")

    @property
    def derived_name(self) -> str:
        return self.name or derive_name(self.identifier)

    @classmethod
    def from_config(cls, entry: Any) -> 'RepositoryDescriptor':
        """
        Build a descriptor from a config entry.

        Accepts either a plain URL string or a mapping with ``url`` and an
        optional ``name``.
        """
        if isinstance(entry, str):
            return cls(identifier=entry)
        if isinstance(entry, dict):
            return cls(identifier=str(entry.get('url') or ''), name=entry.get('name') or None)
        raise ValueError(f"Unsupported repository entry: {entry!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {'url': self.identifier, 'name': self.derived_name}


@dataclass(frozen=True)
class LocalRepository:
    """A repository directory under the target root."""
    name: str
    path: Path
    materialized: bool = False
    has_commit_history: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'path': str(self.path),
            'materialized': self.materialized,
            'has_commit_history': self.has_commit_history,
        }
