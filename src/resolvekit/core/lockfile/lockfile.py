"""Resolved lockfile core class: entry management and serialization.

``ResolvedLockfile`` records the outcome of one resolution: every
dependency at its selected revision. Feeding ``pins()`` back into
``BacktrackingResolver.resolve(last_resolved=...)`` reproduces the same
selection, or updates only the named dependencies.

Determinism guarantee: ``to_dict()`` and ``to_json()`` sort entries by
origin and all keys, and carry no timestamps, so the same resolution
always produces byte-identical JSON.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from resolvekit.core.dependency.constraints import Dependency
from resolvekit.core.dependency.version import PinnedVersion
from resolvekit.core.lockfile.models import LockfileMetadata, ResolvedEntry


class ResolvedLockfile:
    """Exact resolved state of a dependency graph.

    Example::

        lf = ResolvedLockfile()
        lf.add_entry(ResolvedEntry(
            origin="github.com/owner/Mantle",
            name="Mantle",
            version="2.2.0",
        ))
        lf.write(Path("resolved.json"))
    """

    LOCKFILE_VERSION: str = "1.0"

    def __init__(self) -> None:
        self._entries: dict[str, ResolvedEntry] = {}
        self._metadata = LockfileMetadata()

    # -- Entry management ---------------------------------------------------

    def add_entry(self, entry: ResolvedEntry) -> None:
        """Add an entry, replacing any entry with the same origin."""
        self._entries[entry.origin] = entry
        self._metadata.total_dependencies = len(self._entries)

    def get_entry(self, origin: str) -> ResolvedEntry | None:
        return self._entries.get(origin)

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    @property
    def origins(self) -> list[str]:
        """Sorted origins of all entries."""
        return sorted(self._entries)

    def pins(self) -> dict[Dependency, PinnedVersion]:
        """Entries as a ``last_resolved`` mapping for partial updates."""
        return {
            Dependency(origin=e.origin, name=e.name): PinnedVersion(e.version)
            for e in (self._entries[o] for o in self.origins)
        }

    # -- Serialization ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dict; entries sorted by origin.

        Returns:
            A dictionary suitable for JSON serialization.
        """
        entries: dict[str, Any] = {}
        for origin in self.origins:
            entry = self._entries[origin]
            entries[origin] = {"name": entry.name, "version": entry.version}

        return {
            "lockfile_version": self.LOCKFILE_VERSION,
            "generated_by": "resolvekit",
            "dependencies": entries,
            "metadata": {
                "total_dependencies": self._metadata.total_dependencies,
                "resolution_strategy": self._metadata.resolution_strategy,
                "root_dependencies": sorted(self._metadata.root_dependencies),
            },
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    def write(self, path: Path) -> None:
        """Write the lockfile as JSON, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json() + "\n", encoding="utf-8")

    # -- Metadata access ----------------------------------------------------

    @property
    def metadata(self) -> LockfileMetadata:
        return self._metadata

    @metadata.setter
    def metadata(self, value: LockfileMetadata) -> None:
        self._metadata = value
