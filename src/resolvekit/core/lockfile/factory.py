"""Lockfile factory: constructing lockfiles from resolution results.

The normal workflow::

    resolver = BacktrackingResolver(*index.collaborators())
    resolved = resolver.resolve(requirements)
    lockfile = ResolvedLockfile.from_resolution(resolved, roots=requirements)
    lockfile.write(Path("resolved.json"))
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from resolvekit.core.dependency.constraints import Dependency
from resolvekit.core.dependency.version import PinnedVersion
from resolvekit.core.lockfile.models import ResolvedEntry


def _from_resolution(
    cls: type,
    resolved: Mapping[Dependency, PinnedVersion],
    roots: Iterable[Dependency] = (),
) -> Any:
    """Create a lockfile from the mapping returned by ``resolve()``.

    Args:
        resolved: Selected revision of every dependency.
        roots: Dependencies requested directly by the manifest; recorded
            in the metadata. Mappings are accepted and their keys used.

    Returns:
        A new ``ResolvedLockfile``.
    """
    lf = cls()
    for dependency, version in resolved.items():
        lf.add_entry(
            ResolvedEntry(
                origin=dependency.origin,
                name=dependency.name,
                version=version.commitish,
            )
        )
    lf.metadata.root_dependencies = sorted({d.origin for d in roots})
    return lf
