"""
Sparse fetch service for repofleet.

Materializes partial local copies of remote repositories under a target
root. Used by the `repofleet fetch` command.

Each descriptor goes through:
1. Idempotence check (existing target directory -> skipped)
2. Metadata-only clone (no blobs, no working tree)
3. Sparse-checkout pattern setup
4. Checkout of the filtered working tree

A failure in one descriptor never stops the others, and nothing is ever
deleted: a failed checkout leaves its repository shell on disk so a
re-run after manual repair cannot destroy files added by hand.
"""

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Iterable, Optional, Sequence, Tuple

from ..config import get_number, load_config
from ..domain.descriptor import LocalRepository, RepositoryDescriptor
from ..domain.operation import (
    ErrorKind,
    OperationOutcome,
    OperationReport,
    OperationStatus,
    RunSummary,
    REASON_ALREADY_EXISTS,
    REASON_CANCELLED,
    REASON_CHECKOUT_ERROR,
    REASON_CLONE_ERROR,
    REASON_SPARSE_ERROR,
)
from ..exit_codes import RootDirectoryError
from ..infra.git_client import GitClient, expand_path_filters
from ..infra.process import OperationCancelled
from .batch import run_batch

logger = logging.getLogger(__name__)


@dataclass
class FetchOptions:
    """Options for fetch operations."""
    sparse: bool = True  # False = plain full clone
    parallel: int = 1  # Number of concurrent fetches (1 = sequential)
    retries: int = 0  # Extra attempts for clone/checkout
    retry_backoff: float = 2.0  # Seconds before the first retry, doubled each time
    deadline: Optional[float] = None  # Seconds for the whole run

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'FetchOptions':
        """
        Build options from the ``fetch`` section.

        Raises:
            ConfigError: if a numeric setting is not a number
        """
        fetch = config.get('fetch', {})
        deadline = get_number(config, 'fetch', 'deadline_seconds', 0)
        return cls(
            sparse=bool(fetch.get('sparse', True)),
            parallel=max(1, get_number(config, 'fetch', 'parallel', 1, int)),
            retries=max(0, get_number(config, 'fetch', 'retries', 0, int)),
            retry_backoff=get_number(config, 'fetch', 'retry_backoff_seconds', 2.0),
            deadline=deadline if deadline > 0 else None,
        )


class ExistingDirectoryPolicy:
    """Treat a target as already fetched when its directory exists."""

    def already_materialized(self, target: Path) -> bool:
        return target.is_dir()


class SparseFetchService:
    """
    Service for fetching many repositories into one target root.

    Example:
        service = SparseFetchService()
        descriptors = [RepositoryDescriptor("git@github.com:org/tool.git")]

        for progress in service.fetch_all(descriptors, "cloned_repos", ["README.md", "src/"]):
            print(progress)

        result = service.last_result
        print(f"Fetched {result.summary.succeeded} repos")
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        git_client: Optional[GitClient] = None,
        policy: Optional[ExistingDirectoryPolicy] = None,
    ):
        """
        Initialize SparseFetchService.

        Args:
            config: Configuration dict (loads default if None)
            git_client: GitClient instance (creates new if None)
            policy: Idempotence policy (existing directory check if None)
        """
        self.config = config if config is not None else load_config()
        timeout = get_number(self.config, 'fetch', 'timeout_seconds', 600)
        self.git = git_client or GitClient(timeout=timeout)
        self.policy = policy or ExistingDirectoryPolicy()
        self.last_result: Optional[OperationReport] = None

    @staticmethod
    def prepare_root(target_root: Path) -> None:
        """Create the target root, or raise RootDirectoryError."""
        try:
            target_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RootDirectoryError(str(target_root), e.strerror or str(e))
        if not os.access(target_root, os.W_OK | os.X_OK):
            raise RootDirectoryError(str(target_root), "not writable")

    def fetch_all(
        self,
        descriptors: Iterable[RepositoryDescriptor],
        target_root,
        path_filters: Sequence[str],
        options: Optional[FetchOptions] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Generator[str, None, OperationReport]:
        """
        Fetch every descriptor into ``target_root``.

        Args:
            descriptors: Repositories to fetch, in reporting order
            target_root: Directory receiving one subdirectory per repository
            path_filters: Paths to keep (directory prefixes end with "/")
            options: Fetch options
            cancel: Event that aborts in-flight and pending work when set

        Yields:
            Progress messages

        Returns:
            OperationReport with one outcome per descriptor

        Raises:
            RootDirectoryError: if the target root cannot be created
        """
        options = options or FetchOptions()
        target_root = Path(target_root).expanduser()
        descriptors = list(descriptors)
        patterns = expand_path_filters(path_filters)
        cancel = cancel or threading.Event()

        self.prepare_root(target_root)

        mode = f"sparse ({', '.join(patterns)})" if options.sparse else "full"
        yield f"Fetching {len(descriptors)} repositories into {target_root} [{mode}]"

        # Same-named descriptors must not clone into one directory at once
        name_locks = {d.derived_name: threading.Lock() for d in descriptors}

        def fetch_one(descriptor: RepositoryDescriptor) -> OperationOutcome:
            with name_locks[descriptor.derived_name]:
                return self._fetch_one(descriptor, target_root, patterns, options, cancel)

        timer = None
        if options.deadline:
            timer = threading.Timer(options.deadline, cancel.set)
            timer.daemon = True
            timer.start()

        try:
            if descriptors:
                outcomes = yield from run_batch(
                    descriptors,
                    fetch_one,
                    label=lambda d: d.derived_name,
                    describe=_describe,
                    parallel=options.parallel,
                    verb="Fetching",
                )
            else:
                yield "No repositories to fetch"
                outcomes = []
        finally:
            if timer is not None:
                timer.cancel()

        repositories = [
            LocalRepository(
                name=o.name,
                path=Path(o.path),
                materialized=True,
                has_commit_history=bool(self.git.has_commits(Path(o.path))),
            )
            for o in outcomes if o.status == OperationStatus.SUCCESS
        ]
        result = OperationReport.build("fetch", outcomes, repositories)
        self.last_result = result
        return result

    def _fetch_one(
        self,
        descriptor: RepositoryDescriptor,
        target_root: Path,
        patterns: Sequence[str],
        options: FetchOptions,
        cancel: threading.Event,
    ) -> OperationOutcome:
        """Fetch a single descriptor; never raises for per-item failures."""
        name = descriptor.derived_name
        dest = target_root / name
        path = str(dest)

        if cancel.is_set():
            return OperationOutcome.skipped(name, path, REASON_CANCELLED, ErrorKind.CANCELLED)

        if self.policy.already_materialized(dest):
            logger.debug(f"Directory '{name}' already exists, skipping")
            return OperationOutcome.skipped(name, path, REASON_ALREADY_EXISTS, ErrorKind.ALREADY_EXISTS)

        url = descriptor.identifier
        try:
            if not options.sparse:
                ok, output = self._with_retries(
                    lambda: self.git.clone(url, dest, cancel=cancel),
                    f"clone {name}", options, cancel, fresh_dir=dest,
                )
                if not ok:
                    return OperationOutcome.failed(name, path, REASON_CLONE_ERROR,
                                                   ErrorKind.TRANSPORT_FAILURE, detail=output)
                return OperationOutcome.success(name, path, mode="full", url=url)

            ok, output = self._with_retries(
                lambda: self.git.clone_metadata_only(url, dest, cancel=cancel),
                f"clone {name}", options, cancel, fresh_dir=dest,
            )
            if not ok:
                return OperationOutcome.failed(name, path, REASON_CLONE_ERROR,
                                               ErrorKind.TRANSPORT_FAILURE, detail=output)

            ok, output = self.git.set_sparse_patterns(dest, patterns)
            if not ok:
                return OperationOutcome.failed(name, path, REASON_SPARSE_ERROR,
                                               ErrorKind.FILTER_CONFIG_FAILURE, detail=output)

            ok, output = self._with_retries(
                lambda: self.git.checkout(dest, cancel=cancel),
                f"checkout {name}", options, cancel,
            )
            if not ok:
                # The shell stays on disk; see module docstring
                return OperationOutcome.failed(name, path, REASON_CHECKOUT_ERROR,
                                               ErrorKind.MATERIALIZATION_FAILURE, detail=output)
        except OperationCancelled:
            return OperationOutcome.failed(name, path, REASON_CANCELLED, ErrorKind.CANCELLED)

        return OperationOutcome.success(name, path, mode="sparse", url=url)

    def _with_retries(
        self,
        action: Callable[[], Tuple[bool, str]],
        label: str,
        options: FetchOptions,
        cancel: threading.Event,
        fresh_dir: Optional[Path] = None,
    ) -> Tuple[bool, str]:
        """
        Run a remote step with bounded exponential backoff.

        When ``fresh_dir`` is given the step must create it, so no retry
        happens once a failed attempt has left that directory behind.
        """
        attempts = max(0, options.retries) + 1
        delay = options.retry_backoff
        for attempt in range(1, attempts + 1):
            ok, output = action()
            if ok or attempt == attempts:
                return ok, output
            if fresh_dir is not None and fresh_dir.exists():
                logger.warning(f"{label} failed and left {fresh_dir} behind, not retrying")
                return ok, output
            logger.warning(f"{label} failed (attempt {attempt}/{attempts}), retrying in {delay:.1f}s")
            if cancel.wait(delay):
                raise OperationCancelled([label])
            delay *= 2
        return False, ""


def _describe(outcome: OperationOutcome) -> str:
    """Status line for a finished fetch."""
    if outcome.status == OperationStatus.SUCCESS:
        return f"  ✓ {outcome.name}: fetched ({outcome.metadata.get('mode', 'sparse')})"
    if outcome.status == OperationStatus.SKIPPED:
        return f"  - {outcome.name}: skipped ({outcome.reason})"
    return f"  ✗ {outcome.name}: {outcome.reason}"


def fetch_all(
    descriptors: Iterable[RepositoryDescriptor],
    target_root,
    path_filters: Sequence[str],
    options: Optional[FetchOptions] = None,
    git_client: Optional[GitClient] = None,
) -> Tuple[Tuple[OperationOutcome, ...], RunSummary]:
    """Run a fetch without progress output and return (outcomes, summary)."""
    service = SparseFetchService(config={}, git_client=git_client)
    for message in service.fetch_all(descriptors, target_root, path_filters, options):
        logger.debug(message)
    return service.last_result.outcomes, service.last_result.summary
