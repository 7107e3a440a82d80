"""``resolvekit resolve <manifest>``: resolve and write ``resolved.json``.

Loads the root requirements from a YAML manifest and the available
versions from a YAML index, runs backtracking resolution, and writes a
deterministic lockfile.

Exit Codes:
    0 Lockfile written.
    1 Resolution failed (unsatisfiable or conflicting requirements).
    2 Invalid input (unreadable manifest, index, or lockfile).
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from resolvekit.cli.loader import load_index, load_manifest
from resolvekit.cli.output import print_lockfile_diff, print_resolution_summary
from resolvekit.core.dependency import BacktrackingResolver
from resolvekit.core.lockfile import ResolvedLockfile
from resolvekit.exceptions import ResolutionError, ResolveKitError

logger = logging.getLogger(__name__)

DEFAULT_LOCKFILE_NAME = "resolved.json"


def _fail_input(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(2)


@click.command("resolve")
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--index", "-i", "index_path",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="YAML index of available versions and their requirements.",
)
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help=f"Lockfile path (default: <manifest dir>/{DEFAULT_LOCKFILE_NAME}).",
)
@click.option(
    "--update", "-u", "updates",
    multiple=True,
    metavar="NAME",
    help="Only move NAME away from the existing lockfile. Repeatable.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the lockfile as JSON.")
def resolve_command(
    manifest: str,
    index_path: str,
    output: str | None,
    updates: tuple[str, ...],
    as_json: bool,
) -> None:
    """Resolve MANIFEST against an index and write a lockfile.

    With --update, dependencies not named keep the version recorded in the
    existing lockfile unless an updated dependency requires otherwise.

    Exit code 0 on success, 1 on resolution failure, 2 on invalid input.
    """
    manifest_path = Path(manifest)
    out_path = Path(output) if output else manifest_path.parent / DEFAULT_LOCKFILE_NAME

    try:
        roots = load_manifest(manifest_path)
        index = load_index(Path(index_path))
        previous = ResolvedLockfile.read(out_path) if out_path.exists() else None
    except ResolveKitError as exc:
        _fail_input(str(exc))

    if updates and previous is None:
        _fail_input(f"--update requires an existing lockfile at {out_path}")

    resolver = BacktrackingResolver(*index.collaborators())
    try:
        resolved = resolver.resolve(
            roots,
            last_resolved=previous.pins() if updates else None,
            dependencies_to_update=updates,
        )
    except ResolutionError as exc:
        logger.debug("Resolution of %s failed", manifest_path, exc_info=True)
        if as_json:
            click.echo(json.dumps({"success": False, "error": str(exc)}, indent=2))
        else:
            print_resolution_summary(success=False, resolved={}, errors=[str(exc)])
        sys.exit(1)

    lockfile = ResolvedLockfile.from_resolution(
        resolved, roots=[dependency for dependency, _ in roots if dependency in resolved]
    )
    lockfile.write(out_path)

    if as_json:
        click.echo(lockfile.to_json())
        sys.exit(0)

    print_resolution_summary(
        success=True,
        resolved={d.origin: v.commitish for d, v in resolved.items()},
        errors=[],
    )
    if previous is not None:
        print_lockfile_diff(previous.diff(lockfile))
    click.echo(f"\nLockfile written to: {out_path}")
    sys.exit(0)
