"""ResolveKit CLI: backtracking dependency resolution from the command line.

Entry point for the ``resolvekit`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    resolve    Resolve a manifest against an index and write a lockfile.

Usage::

    resolvekit resolve Cartfile.yaml --index index.yaml
    resolvekit resolve Cartfile.yaml --index index.yaml --update Mantle
    resolvekit --log-level DEBUG resolve Cartfile.yaml --index index.yaml --json
"""

from __future__ import annotations

import logging

import click

from resolvekit import __version__
from resolvekit.cli.resolve_cmd import resolve_command

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="RESOLVEKIT_LOG_LEVEL",
    help="Logging verbosity (also read from RESOLVEKIT_LOG_LEVEL).",
)
def cli(log_level: str) -> None:
    """ResolveKit: pick one version of every dependency in a graph.

    Explores candidates newest-first and backtracks on conflicts until
    every requirement is satisfied, then records the result in a
    deterministic lockfile.
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format=LOG_FORMAT,
    )


# Register all subcommands
cli.add_command(resolve_command)
