#!/usr/bin/env python3

import click

from repofleet.cli_utils import CONTEXT_SETTINGS
from repofleet.commands.fetch import fetch_handler
from repofleet.commands.changelog import changelog_handler


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name='repofleet')
def cli():
    """repofleet - Sparse fetches and changelogs across a fleet of repositories.

    `fetch` materializes partial checkouts of the configured remotes;
    `changelog` runs git-cliff in each local checkout.
    """
    pass


cli.add_command(fetch_handler, name='fetch')
cli.add_command(changelog_handler, name='changelog')


def main():
    cli()


def fetch_main():
    """Standalone `repofleet-fetch` entry point."""
    fetch_handler()


def changelog_main():
    """Standalone `repofleet-changelog` entry point."""
    changelog_handler()


if __name__ == "__main__":
    main()
