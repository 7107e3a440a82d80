"""Resolved lockfile: reproducible resolution results.

The package is split into focused submodules:

- ``models``: data classes (``ResolvedEntry``, ``LockfileMetadata``).
- ``lockfile``: the ``ResolvedLockfile`` class with entry management,
  ``pins()`` and deterministic serialization.
- ``operations``: deserialization (``from_dict``, ``from_json``, ``read``)
  and diffing.
- ``factory``: ``from_resolution`` for building a lockfile from the result
  of ``BacktrackingResolver.resolve()``.

All public names are re-exported here, so
``from resolvekit.core.lockfile import ResolvedLockfile`` works.
"""

from resolvekit.core.lockfile.models import LockfileMetadata, ResolvedEntry
from resolvekit.core.lockfile.lockfile import ResolvedLockfile

# Attach operations to ResolvedLockfile as methods/classmethods
from resolvekit.core.lockfile import operations as _ops
from resolvekit.core.lockfile import factory as _factory

ResolvedLockfile.from_dict = classmethod(_ops._from_dict)
ResolvedLockfile.from_json = classmethod(_ops._from_json)
ResolvedLockfile.read = classmethod(_ops._read)
ResolvedLockfile.diff = _ops._diff
ResolvedLockfile.from_resolution = classmethod(_factory._from_resolution)

__all__ = [
    "ResolvedLockfile",
    "ResolvedEntry",
    "LockfileMetadata",
]
