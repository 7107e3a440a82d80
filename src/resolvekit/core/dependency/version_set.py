"""Ordered, duplicate-free candidate sets.

``ConcreteVersionSet`` keeps the remaining candidates of one dependency in
preference order (see ``ConcreteVersion``), so index 0 is always the best
remaining choice. Insertion, removal, and membership use binary search.

Sets are mutable and owned by a single search branch; ``copy()`` must be
used whenever a branch is forked.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

from resolvekit.core.dependency.constraints import (
    Dependency,
    VersionSpecifier,
    intersect,
)
from resolvekit.core.dependency.version import ConcreteVersion


@dataclass(frozen=True)
class PinnedDependency:
    """A dependency together with one concrete candidate."""

    dependency: Dependency
    version: ConcreteVersion

    def __str__(self) -> str:
        return f"{self.dependency} @ {self.version}"


@dataclass(frozen=True)
class Definition:
    """A specifier applied to a candidate set, and who declared it.

    ``declared_by`` is None for requirements from the root manifest.
    """

    specifier: VersionSpecifier
    declared_by: PinnedDependency | None = None


class ConcreteVersionSet:
    """Sorted set of candidate versions for a single dependency.

    Example::

        versions = ConcreteVersionSet(
            ConcreteVersion.from_string(v) for v in ["0.9.0", "1.3.0", "main"]
        )
        versions.retain_compatible(AtLeast(SemanticVersion(1)))
        versions.first  # ConcreteVersion("1.3.0")
    """

    def __init__(self, versions: Iterable[ConcreteVersion] = ()) -> None:
        self._storage: list[ConcreteVersion] = sorted(set(versions))
        self._definitions: list[Definition] = []
        self.is_pinned = False

    # -- Queries ------------------------------------------------------------

    @property
    def first(self) -> ConcreteVersion | None:
        """The most preferred remaining candidate, or None when empty."""
        return self._storage[0] if self._storage else None

    @property
    def definitions(self) -> list[Definition]:
        return list(self._definitions)

    def __len__(self) -> int:
        return len(self._storage)

    def __bool__(self) -> bool:
        return bool(self._storage)

    def __iter__(self) -> Iterator[ConcreteVersion]:
        return iter(self._storage)

    def __getitem__(self, index: int) -> ConcreteVersion:
        return self._storage[index]

    def __contains__(self, version: object) -> bool:
        if not isinstance(version, ConcreteVersion):
            return False
        return self._search(version) >= 0

    def __repr__(self) -> str:
        return "[" + ", ".join(str(v) for v in self._storage) + "]"

    def _search(self, version: ConcreteVersion) -> int:
        """Index of ``version``, or ``-(insertion_point + 1)`` if absent."""
        i = bisect_left(self._storage, version)
        if i < len(self._storage) and self._storage[i] == version:
            return i
        return -(i + 1)

    # -- Mutation -----------------------------------------------------------

    def insert(self, version: ConcreteVersion) -> bool:
        """Insert ``version`` in order. Returns False if it was already present."""
        i = self._search(version)
        if i >= 0:
            return False
        self._storage.insert(-(i + 1), version)
        return True

    def remove(self, version: ConcreteVersion) -> bool:
        """Remove ``version``. Returns False if it was not present."""
        i = self._search(version)
        if i < 0:
            return False
        del self._storage[i]
        return True

    def remove_all_except(self, version: ConcreteVersion) -> None:
        """Keep only ``version`` (or nothing, if it is not a member)."""
        self._storage = [version] if version in self else []

    def retain(self, predicate: Callable[[ConcreteVersion], bool]) -> None:
        """Drop every candidate for which ``predicate`` is false."""
        self._storage = [v for v in self._storage if predicate(v)]

    def retain_compatible(
        self, specifier: VersionSpecifier, resolved: ConcreteVersion | None = None
    ) -> None:
        """Drop every candidate that does not satisfy ``specifier``.

        Args:
            specifier: Constraint to apply.
            resolved: For a ``GitReference``, the revision it resolved to.
        """
        self.retain(lambda v: specifier.satisfied_by(v, resolved))

    # -- Definitions --------------------------------------------------------

    def add_definition(self, definition: Definition) -> None:
        self._definitions.append(definition)

    def conflicting_definition(self, specifier: VersionSpecifier) -> Definition | None:
        """First recorded definition whose specifier cannot coexist with ``specifier``."""
        for definition in self._definitions:
            if intersect(definition.specifier, specifier) is None:
                return definition
        return None

    # -- Copying ------------------------------------------------------------

    def copy(self) -> ConcreteVersionSet:
        """Independent clone; mutating either set never affects the other."""
        clone = ConcreteVersionSet()
        clone._storage = list(self._storage)
        clone._definitions = list(self._definitions)
        clone.is_pinned = self.is_pinned
        return clone
