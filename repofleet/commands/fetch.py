"""
Handles the 'fetch' command: sparse clones of every configured repository.

Reads the repository list and target directory from configuration, so
it runs with no flags at all. Exits 1 if any repository failed.
"""

import sys
from typing import Optional

import click

from ..cli_utils import CONTEXT_SETTINGS, handle_errors, output_options
from ..config import configure_logging, load_config, load_descriptors
from ..render import render
from ..services.fetch_service import FetchOptions, SparseFetchService


@click.command('fetch', context_settings=CONTEXT_SETTINGS)
@click.option('-d', '--dir', 'target_dir', default=None,
              help='Target directory (default: fetch.target_dir from config)')
@click.option('--full', is_flag=True, help='Clone complete repositories instead of sparse checkouts')
@click.option('--parallel', '-p', type=click.IntRange(min=1), default=None,
              help='Number of parallel fetches')
@click.option('--retries', type=click.IntRange(min=0), default=None,
              help='Retry failed clone/checkout steps this many times')
@click.option('--deadline', type=click.FloatRange(min=0, min_open=True), default=None,
              help='Cancel remaining work after this many seconds')
@output_options
@handle_errors
def fetch_handler(
    target_dir: Optional[str],
    full: bool,
    parallel: Optional[int],
    retries: Optional[int],
    deadline: Optional[float],
    output_json: bool,
    pretty: bool,
    debug: bool,
):
    """
    Fetch configured repositories into the target directory.

    Each repository is cloned without file contents, restricted to the
    configured paths (default: README.md and src/) and checked out.
    Repositories whose directory already exists are skipped, so the
    command can simply be re-run after a partial failure.

    \b
    Examples:
        # Fetch everything listed under 'repositories' in the config
        repofleet fetch
        # Four fetches at a time, retrying flaky clones twice
        repofleet fetch --parallel 4 --retries 2
        # Complete clones into another directory
        repofleet fetch --full -d ~/mirrors
    """
    config = load_config()
    configure_logging(config, debug)

    descriptors = load_descriptors(config)
    fetch_config = config.get('fetch', {})
    target_dir = target_dir or fetch_config.get('target_dir', 'cloned_repos')
    paths = fetch_config.get('paths') or []

    options = FetchOptions.from_config(config)
    if full:
        options.sparse = False
    if parallel is not None:
        options.parallel = parallel
    if retries is not None:
        options.retries = retries
    if deadline is not None:
        options.deadline = deadline

    if not descriptors and not output_json:
        click.echo("No repositories configured (add them under 'repositories' in the config)", err=True)

    service = SparseFetchService(config=config)
    progress_iter = service.fetch_all(descriptors, target_dir, paths, options)

    title = "Sparse Fetch" if options.sparse else "Full Clone"
    report = render(
        progress_iter, title, output_json_mode=output_json, pretty=pretty,
        extra_headers=[("Target", target_dir), ("Repositories", len(descriptors))],
        success_label="Fetched",
    )
    sys.exit(report.summary.exit_code)
