"""Lockfile data models: ResolvedEntry and LockfileMetadata.

Pure data holders with no behaviour, safe to import from anywhere in the
package without circular-import concerns.
"""

from __future__ import annotations

from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# ResolvedEntry: one dependency pinned in the lockfile
# ---------------------------------------------------------------------------


@dataclass
class ResolvedEntry:
    """A single dependency entry in the lockfile.

    Attributes:
        origin: Where the dependency lives (e.g. "github.com/owner/Repo").
            Unique within a lockfile.
        name: Short name of the dependency.
        version: Selected revision: a tag, branch, or commit.
    """

    origin: str
    name: str
    version: str


# ---------------------------------------------------------------------------
# LockfileMetadata: top-level metadata section
# ---------------------------------------------------------------------------


@dataclass
class LockfileMetadata:
    """Metadata section of the lockfile.

    Attributes:
        total_dependencies: Expected number of entries. A mismatch when
            reading indicates an incomplete write.
        resolution_strategy: Algorithm that produced the lockfile
            ("backtracking", or "manual" for hand-authored files).
        root_dependencies: Origins requested directly by the manifest.
    """

    total_dependencies: int = 0
    resolution_strategy: str = "backtracking"
    root_dependencies: list[str] = field(default_factory=list)
