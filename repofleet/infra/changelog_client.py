"""
Changelog generator client for repofleet.

Wraps git-cliff (https://git-cliff.org), which reads the commit history
of the repository in its working directory and writes release notes.
"""

import logging
import shutil
import threading
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .process import run_process

logger = logging.getLogger(__name__)

INSTALL_HINT = "see https://git-cliff.org/docs/installation"


class ChangelogClient:
    """
    Abstraction over the external changelog generator.

    Example:
        client = ChangelogClient()
        if client.is_available():
            ok, output = client.generate(Path("repos/tool"), "CHANGELOG.md")
    """

    def __init__(
        self,
        command: str = "git-cliff",
        extra_args: Optional[Sequence[str]] = None,
        timeout: int = 300,
    ):
        """
        Initialize ChangelogClient.

        Args:
            command: Generator executable name or path
            extra_args: Arguments appended to every invocation
            timeout: Command timeout in seconds
        """
        self.command = command
        self.extra_args: List[str] = list(extra_args or [])
        self.timeout = timeout

    def is_available(self) -> bool:
        """Check the generator can be found on PATH."""
        return shutil.which(self.command) is not None

    def version(self) -> Optional[str]:
        """Generator version string, or None if it cannot be run."""
        output, code = run_process([self.command, "--version"], timeout=30)
        if code == 0 and output:
            return output.strip()
        return None

    def generate(
        self,
        path: Path,
        output_file: str,
        cancel: Optional[threading.Event] = None,
    ) -> Tuple[bool, str]:
        """
        Write ``output_file`` inside ``path`` from its commit history.

        Returns:
            (success, output) where output is the generator's stdout/stderr
        """
        output, code = run_process(
            [self.command, "--output", output_file] + self.extra_args,
            cwd=str(path),
            timeout=self.timeout,
            cancel=cancel,
            capture_stderr=True,
        )
        return code == 0, output or ""
