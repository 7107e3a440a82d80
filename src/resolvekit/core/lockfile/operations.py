"""Lockfile operations: deserialization and diffing.

These functions are attached to ``ResolvedLockfile`` in the package
``__init__`` so that callers see one class with a single API.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from resolvekit.core.lockfile.models import LockfileMetadata, ResolvedEntry
from resolvekit.exceptions import LockfileError


def _from_dict(cls: type, data: dict[str, Any]) -> Any:
    """Deserialize a lockfile from the dict produced by ``to_dict()``.

    Missing metadata fields fall back to their defaults.

    Raises:
        LockfileError: If an entry is malformed, or the recorded
            ``total_dependencies`` disagrees with the number of entries.
    """
    if not isinstance(data, dict):
        raise LockfileError("Lockfile must be a JSON object")

    lf = cls()
    entries = data.get("dependencies", {})
    if not isinstance(entries, dict):
        raise LockfileError("Lockfile 'dependencies' must be an object")

    for origin, entry in entries.items():
        if not isinstance(entry, dict) or not entry.get("version"):
            raise LockfileError(f"Lockfile entry for {origin!r} has no version")
        name = entry.get("name") or origin.rstrip("/").rsplit("/", 1)[-1]
        lf._entries[origin] = ResolvedEntry(
            origin=origin, name=str(name), version=str(entry["version"])
        )

    meta = data.get("metadata", {})
    lf._metadata = LockfileMetadata(
        total_dependencies=meta.get("total_dependencies", len(lf._entries)),
        resolution_strategy=meta.get("resolution_strategy", "backtracking"),
        root_dependencies=list(meta.get("root_dependencies", [])),
    )
    if lf._metadata.total_dependencies != len(lf._entries):
        raise LockfileError(
            f"Lockfile metadata lists {lf._metadata.total_dependencies} "
            f"dependencies but contains {len(lf._entries)}"
        )
    return lf


def _from_json(cls: type, json_str: str) -> Any:
    """Deserialize from a JSON string.

    Raises:
        LockfileError: If the string is not valid JSON or not a lockfile.
    """
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise LockfileError(f"Lockfile is not valid JSON: {exc}") from exc
    return cls.from_dict(data)


def _read(cls: type, path: Path) -> Any:
    """Read a lockfile from disk.

    Raises:
        LockfileError: If the file cannot be read or parsed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise LockfileError(f"Cannot read lockfile {path}: {exc}") from exc
    return cls.from_json(text)


def _diff(self: Any, other: Any) -> dict[str, Any]:
    """Compare two lockfiles.

    - **added**: origins present in ``other`` but not in ``self``.
    - **removed**: origins present in ``self`` but not in ``other``.
    - **changed**: origins present in both with a different version.

    Args:
        other: The lockfile to compare against (typically the newer one).

    Returns:
        Dict with keys 'added', 'removed', 'changed'.
    """
    self_origins = set(self._entries)
    other_origins = set(other._entries)

    changes: list[dict[str, Any]] = []
    for origin in sorted(self_origins & other_origins):
        old = self._entries[origin].version
        new = other._entries[origin].version
        if old != new:
            changes.append({"origin": origin, "old": old, "new": new})

    return {
        "added": sorted(other_origins - self_origins),
        "removed": sorted(self_origins - other_origins),
        "changed": changes,
    }
