"""
Handles the 'changelog' command: git-cliff over every local repository.
"""

import sys
from typing import Optional

import click

from ..cli_utils import CONTEXT_SETTINGS, handle_errors, output_options
from ..config import configure_logging, load_config
from ..render import render
from ..services.changelog_service import ChangelogOptions, ChangelogService


@click.command('changelog', context_settings=CONTEXT_SETTINGS)
@click.option('-d', '--dir', 'repos_dir', default=None,
              help="Use DIR instead of 'cloned_repos' as the repositories directory")
@click.option('-o', '--output', 'output_file', default=None,
              help='Changelog file name (default: CHANGELOG.md)')
@click.option('--parallel', '-p', type=click.IntRange(min=1), default=None,
              help='Number of parallel generator runs')
@click.option('--deadline', type=click.FloatRange(min=0, min_open=True), default=None,
              help='Cancel remaining work after this many seconds')
@output_options
@handle_errors
def changelog_handler(
    repos_dir: Optional[str],
    output_file: Optional[str],
    parallel: Optional[int],
    deadline: Optional[float],
    output_json: bool,
    pretty: bool,
    debug: bool,
):
    """
    Generate a changelog for every git repository in the repositories directory.

    Uses git-cliff, which must be installed
    (https://git-cliff.org/docs/installation). Directories that are not
    git repositories, or have no commits yet, are skipped.

    \b
    Examples:
        repofleet changelog              # Use default 'cloned_repos' directory
        repofleet changelog -d my_repos  # Use 'my_repos' directory
    """
    config = load_config()
    configure_logging(config, debug)

    changelog_config = config.get('changelog', {})
    repos_dir = repos_dir or changelog_config.get('repos_dir', 'cloned_repos')
    output_file = output_file or changelog_config.get('output_file', 'CHANGELOG.md')

    options = ChangelogOptions.from_config(config)
    if parallel is not None:
        options.parallel = parallel
    if deadline is not None:
        options.deadline = deadline

    service = ChangelogService(config=config)
    progress_iter = service.generate_all(repos_dir, output_file, options)

    report = render(
        progress_iter, "Changelog Generation", output_json_mode=output_json, pretty=pretty,
        extra_headers=[("Directory", repos_dir), ("Output", output_file)],
        success_label="Generated",
    )
    sys.exit(report.summary.exit_code)
