"""
Changelog generation service for repofleet.

Runs git-cliff in every repository directory under a root and writes a
changelog file into each. Used by the `repofleet changelog` command.
"""

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Tuple

from ..config import get_number, load_config
from ..domain.descriptor import LocalRepository
from ..domain.operation import (
    ErrorKind,
    OperationOutcome,
    OperationReport,
    OperationStatus,
    RunSummary,
    REASON_CANCELLED,
    REASON_ENUMERATION_ERROR,
    REASON_GENERATION_ERROR,
    REASON_NO_COMMITS,
    REASON_NOT_A_REPOSITORY,
)
from ..exit_codes import PrerequisiteMissingError, RootDirectoryError
from ..infra.changelog_client import INSTALL_HINT, ChangelogClient
from ..infra.git_client import GitClient
from ..infra.process import OperationCancelled
from .batch import run_batch

logger = logging.getLogger(__name__)


@dataclass
class ChangelogOptions:
    """Options for changelog generation."""
    parallel: int = 1  # Number of concurrent generator runs (1 = sequential)
    deadline: Optional[float] = None  # Seconds for the whole run

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ChangelogOptions':
        deadline = get_number(config, 'changelog', 'deadline_seconds', 0)
        return cls(
            parallel=max(1, get_number(config, 'changelog', 'parallel', 1, int)),
            deadline=deadline if deadline > 0 else None,
        )


@dataclass(frozen=True)
class _Entry:
    """One directory listing entry under the repositories root."""
    name: str
    path: Path
    error: Optional[OSError] = None


class ChangelogService:
    """
    Service for generating changelogs across a directory of repositories.

    Example:
        service = ChangelogService()

        for progress in service.generate_all("cloned_repos", "CHANGELOG.md"):
            print(progress)

        result = service.last_result
        print(f"Generated {result.summary.succeeded} changelogs")
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        git_client: Optional[GitClient] = None,
        changelog_client: Optional[ChangelogClient] = None,
    ):
        """
        Initialize ChangelogService.

        Args:
            config: Configuration dict (loads default if None)
            git_client: GitClient instance (creates new if None)
            changelog_client: ChangelogClient instance (built from config if None)
        """
        self.config = config if config is not None else load_config()
        settings = self.config.get('changelog', {})
        self.git = git_client or GitClient()
        self.changelog = changelog_client or ChangelogClient(
            command=settings.get('command', 'git-cliff'),
            extra_args=settings.get('extra_args', []),
            timeout=get_number(self.config, 'changelog', 'timeout_seconds', 300),
        )
        self.last_result: Optional[OperationReport] = None

    def check_prerequisites(self) -> str:
        """
        Make sure the generator is installed.

        Returns:
            Generator version string ("unknown" if it cannot be read)

        Raises:
            PrerequisiteMissingError: if the generator is not on PATH
        """
        if not self.changelog.is_available():
            raise PrerequisiteMissingError(self.changelog.command, INSTALL_HINT)
        return self.changelog.version() or "unknown"

    @staticmethod
    def list_directories(repos_root: Path) -> List[_Entry]:
        """
        Immediate subdirectories of ``repos_root``, sorted by name.

        Files and hidden entries are left out. An entry whose type cannot
        be determined is kept with its error attached.

        Raises:
            RootDirectoryError: if the root is missing or unreadable
        """
        if not repos_root.exists():
            raise RootDirectoryError(str(repos_root), "not found")
        if not repos_root.is_dir():
            raise RootDirectoryError(str(repos_root), "not a directory")
        try:
            with os.scandir(repos_root) as it:
                listing = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise RootDirectoryError(str(repos_root), e.strerror or str(e))

        entries = []
        for dir_entry in listing:
            if dir_entry.name.startswith('.'):
                continue
            try:
                if dir_entry.is_dir():
                    entries.append(_Entry(dir_entry.name, Path(dir_entry.path)))
            except OSError as e:
                entries.append(_Entry(dir_entry.name, Path(dir_entry.path), error=e))
        return entries

    def generate_all(
        self,
        repos_root,
        output_file: str = "CHANGELOG.md",
        options: Optional[ChangelogOptions] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Generator[str, None, OperationReport]:
        """
        Generate a changelog in every repository under ``repos_root``.

        Args:
            repos_root: Directory containing one repository per subdirectory
            output_file: Changelog file name, written at each repository root
            options: Changelog options
            cancel: Event that aborts in-flight and pending work when set

        Yields:
            Progress messages

        Returns:
            OperationReport with one outcome per subdirectory

        Raises:
            PrerequisiteMissingError: if the generator is not installed
            RootDirectoryError: if ``repos_root`` cannot be listed
        """
        options = options or ChangelogOptions()
        repos_root = Path(repos_root).expanduser()
        cancel = cancel or threading.Event()

        version = self.check_prerequisites()
        yield f"{self.changelog.command} found: {version}"

        entries = self.list_directories(repos_root)
        yield f"Scanning for repositories in {repos_root}..."

        inspected: Dict[str, LocalRepository] = {}

        def generate_one(entry: _Entry) -> OperationOutcome:
            outcome, repository = self._generate_one(entry, output_file, cancel)
            if repository is not None:
                inspected[entry.name] = repository
            return outcome

        timer = None
        if options.deadline:
            timer = threading.Timer(options.deadline, cancel.set)
            timer.daemon = True
            timer.start()

        try:
            if entries:
                outcomes = yield from run_batch(
                    entries,
                    generate_one,
                    label=lambda e: e.name,
                    describe=_describe,
                    parallel=options.parallel,
                    verb="Generating changelog for",
                )
            else:
                yield f"No repositories found in {repos_root}"
                outcomes = []
        finally:
            if timer is not None:
                timer.cancel()

        repositories = [inspected[e.name] for e in entries if e.name in inspected]
        result = OperationReport.build("changelog", outcomes, repositories)
        self.last_result = result
        return result

    def _generate_one(
        self,
        entry: _Entry,
        output_file: str,
        cancel: threading.Event,
    ) -> Tuple[OperationOutcome, Optional[LocalRepository]]:
        """Generate one changelog; never raises for per-item failures."""
        name, path = entry.name, entry.path

        if entry.error is not None:
            return OperationOutcome.failed(name, str(path), REASON_ENUMERATION_ERROR,
                                           ErrorKind.ENUMERATION_FAILURE,
                                           detail=str(entry.error)), None
        if cancel.is_set():
            return OperationOutcome.skipped(name, str(path), REASON_CANCELLED,
                                            ErrorKind.CANCELLED), None

        try:
            if not self.git.is_git_repo(path):
                return OperationOutcome.skipped(name, str(path), REASON_NOT_A_REPOSITORY,
                                                ErrorKind.NOT_A_REPOSITORY), None

            if not self.git.has_commits(path):
                repository = LocalRepository(name, path, materialized=True)
                return OperationOutcome.skipped(name, str(path), REASON_NO_COMMITS,
                                                ErrorKind.NO_COMMIT_HISTORY), repository

            repository = LocalRepository(name, path, materialized=True, has_commit_history=True)
            ok, output = self.changelog.generate(path, output_file, cancel=cancel)
        except OperationCancelled:
            return OperationOutcome.failed(name, str(path), REASON_CANCELLED,
                                           ErrorKind.CANCELLED), None
        except OSError as e:
            logger.error(f"Cannot inspect {path}: {e}")
            return OperationOutcome.failed(name, str(path), REASON_ENUMERATION_ERROR,
                                           ErrorKind.ENUMERATION_FAILURE, detail=str(e)), None

        if not ok:
            return OperationOutcome.failed(name, str(path), REASON_GENERATION_ERROR,
                                           ErrorKind.GENERATOR_FAILURE, detail=output), repository

        artifact = path / output_file
        return OperationOutcome.success(name, str(path), output=str(artifact),
                                        lines=_count_lines(artifact)), repository


def _count_lines(path: Path) -> Optional[int]:
    try:
        with open(path, 'rb') as f:
            return sum(1 for _ in f)
    except OSError:
        return None


def _describe(outcome: OperationOutcome) -> str:
    """Status line for a finished changelog run."""
    if outcome.status == OperationStatus.SUCCESS:
        lines = outcome.metadata.get('lines')
        suffix = f" ({lines} lines)" if lines is not None else ""
        return f"  ✓ {outcome.name}: changelog generated{suffix}"
    if outcome.status == OperationStatus.SKIPPED:
        return f"  - {outcome.name}: skipped ({outcome.reason})"
    return f"  ✗ {outcome.name}: {outcome.reason}"


def generate_all(
    repos_root,
    output_file: str = "CHANGELOG.md",
    options: Optional[ChangelogOptions] = None,
    git_client: Optional[GitClient] = None,
    changelog_client: Optional[ChangelogClient] = None,
) -> Tuple[Tuple[OperationOutcome, ...], RunSummary]:
    """Run a changelog batch without progress output and return (outcomes, summary)."""
    service = ChangelogService(config={}, git_client=git_client,
                               changelog_client=changelog_client)
    for message in service.generate_all(repos_root, output_file, options):
        logger.debug(message)
    return service.last_result.outcomes, service.last_result.summary
