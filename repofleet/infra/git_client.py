"""
Git client infrastructure for repofleet.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from business logic

Authentication is left entirely to git (ssh agent, credential helpers).
"""

import logging
import threading
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .process import run_process

logger = logging.getLogger(__name__)


def expand_path_filters(filters: Sequence[str]) -> List[str]:
    """
    Expand path prefixes into sparse-checkout include patterns.

    Non-cone patterns match at any depth unless they start with ``/``, so
    every entry is anchored at the repository root. A directory prefix on
    its own is ambiguous in non-cone matching, so every entry ending in
    ``/`` is paired with an explicit ``<dir>/*`` wildcard. Order is kept
    and duplicates are dropped.

        ["README.md", "src/"] -> ["/README.md", "/src/", "/src/*"]
    """
    patterns: List[str] = []
    for entry in filters:
        entry = entry.strip()
        if not entry:
            continue
        if not entry.startswith('/'):
            entry = '/' + entry
        candidates = [entry]
        if entry.endswith('/'):
            candidates.append(entry + '*')
        for pattern in candidates:
            if pattern not in patterns:
                patterns.append(pattern)
    return patterns


class GitClient:
    """
    Abstraction over git commands.

    Mutating methods return ``(success, output)`` where output carries
    git's combined stdout/stderr for error reporting.

    Example:
        client = GitClient()
        ok, output = client.clone_metadata_only(url, Path("repos/tool"))
        if ok:
            client.set_sparse_patterns(Path("repos/tool"), ["/README.md", "/src/", "/src/*"])
            client.checkout(Path("repos/tool"))
    """

    def __init__(self, timeout: int = 600, git: str = "git"):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: 600)
            git: git executable
        """
        self.timeout = timeout
        self.git = git

    def _run(
        self,
        args: List[str],
        cwd: Optional[Path] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Tuple[Optional[str], int]:
        return run_process(
            [self.git] + args,
            cwd=str(cwd) if cwd else None,
            timeout=self.timeout,
            cancel=cancel,
            capture_stderr=True,
        )

    def is_git_repo(self, path: Path) -> bool:
        """Check if path is a git repository."""
        git_dir = Path(path) / ".git"
        return git_dir.exists()

    def has_commits(self, path: Path) -> bool:
        """Check whether HEAD resolves to a commit."""
        _, code = self._run(["rev-parse", "--verify", "--quiet", "HEAD"], cwd=path)
        return code == 0

    def clone(
        self,
        url: str,
        dest: Path,
        cancel: Optional[threading.Event] = None,
    ) -> Tuple[bool, str]:
        """Full clone of ``url`` into ``dest``."""
        output, code = self._run(["clone", "--", url, str(dest)], cancel=cancel)
        return code == 0, output or ""

    def clone_metadata_only(
        self,
        url: str,
        dest: Path,
        cancel: Optional[threading.Event] = None,
    ) -> Tuple[bool, str]:
        """
        Clone history without file contents and without a working tree.

        Blobs are fetched lazily by the later checkout, restricted to the
        sparse patterns.
        """
        output, code = self._run(
            ["clone", "--filter=blob:none", "--no-checkout", "--", url, str(dest)],
            cancel=cancel,
        )
        return code == 0, output or ""

    def set_sparse_patterns(
        self,
        path: Path,
        patterns: Sequence[str],
    ) -> Tuple[bool, str]:
        """
        Enable non-cone sparse checkout with the given include patterns.

        Patterns are written to ``info/sparse-checkout`` in the order given.
        """
        for args in (
            ["config", "core.sparseCheckout", "true"],
            ["config", "core.sparseCheckoutCone", "false"],
        ):
            output, code = self._run(args, cwd=path)
            if code != 0:
                return False, output or ""

        output, code = self._run(["rev-parse", "--git-path", "info/sparse-checkout"], cwd=path)
        if code != 0 or not output:
            return False, output or ""

        sparse_file = Path(output)
        if not sparse_file.is_absolute():
            sparse_file = Path(path) / sparse_file
        try:
            sparse_file.parent.mkdir(parents=True, exist_ok=True)
            sparse_file.write_text("".join(f"{p}\n" for p in patterns))
        except OSError as e:
            logger.error(f"Cannot write {sparse_file}: {e}")
            return False, str(e)
        return True, ""

    def checkout(
        self,
        path: Path,
        cancel: Optional[threading.Event] = None,
    ) -> Tuple[bool, str]:
        """Populate the working tree, honouring sparse patterns."""
        output, code = self._run(["checkout"], cwd=path, cancel=cancel)
        return code == 0, output or ""
