"""Memoizing access to the injected version, dependency, and reference lookups.

The resolver never performs I/O itself. It is constructed with three
callables supplied by the integrator and reaches them only through
``DependencyRetriever``, which caches every answer for the lifetime of the
retriever:

- available versions, once per dependency;
- transitive requirements, once per ``(dependency, version)``;
- resolved references, once per ``(dependency, reference name)``.

It also remembers conflicts found while searching: which pinned
dependencies cannot be selected together (or at all, given the root
requirements), and how often each dependency took part in a conflict.
Branches consult this to skip known dead ends and to settle troublesome
dependencies first.

Any exception raised by a callable aborts resolution as a
``CollaboratorError`` chained to the original exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, TypeVar

from resolvekit.core.dependency.constraints import Dependency, VersionSpecifier
from resolvekit.core.dependency.version import ConcreteVersion, PinnedVersion
from resolvekit.core.dependency.version_set import ConcreteVersionSet, PinnedDependency
from resolvekit.exceptions import CollaboratorError, ResolutionError, ResolveKitError

logger = logging.getLogger(__name__)

DependencyEntry = tuple[Dependency, VersionSpecifier]

VersionsForDependency = Callable[[Dependency], Iterable[PinnedVersion]]
DependenciesForDependency = Callable[[Dependency, PinnedVersion], Iterable[DependencyEntry]]
ResolvedGitReference = Callable[[Dependency, str], PinnedVersion]

_T = TypeVar("_T")


def _as_pinned(value: PinnedVersion | str) -> PinnedVersion:
    return value if isinstance(value, PinnedVersion) else PinnedVersion(str(value))


@dataclass
class DependencyConflict:
    """Known reason why a pinned dependency cannot be selected.

    Attributes:
        error: The rejection raised when the conflict was first found.
        conflicting: Pinned dependencies it cannot be selected together
            with, in discovery order. None means it conflicts with the
            root requirements and can never be selected.
    """

    error: ResolutionError
    conflicting: list[PinnedDependency] | None = field(default_factory=list)

    def add(self, other: PinnedDependency | None) -> bool:
        """Record another conflicting party. Returns False if already known."""
        if self.conflicting is None:
            return False
        if other is None:
            self.conflicting = None
            return True
        if other in self.conflicting:
            return False
        self.conflicting.append(other)
        return True


class DependencyRetriever:
    """Caching front for the three external lookups.

    Args:
        versions_for_dependency: Returns every selectable revision of a
            dependency, in any order.
        dependencies_for_dependency: Returns the declared requirements of
            one revision. An empty result means a leaf.
        resolved_git_reference: Resolves a branch, tag, or other reference
            name to a single revision.
    """

    def __init__(
        self,
        versions_for_dependency: VersionsForDependency,
        dependencies_for_dependency: DependenciesForDependency,
        resolved_git_reference: ResolvedGitReference,
    ) -> None:
        self._versions_for_dependency = versions_for_dependency
        self._dependencies_for_dependency = dependencies_for_dependency
        self._resolved_git_reference = resolved_git_reference

        self._version_cache: dict[Dependency, ConcreteVersionSet] = {}
        self._dependency_cache: dict[tuple[Dependency, PinnedVersion], list[DependencyEntry]] = {}
        self._reference_cache: dict[tuple[Dependency, str], ConcreteVersion] = {}
        self._conflict_cache: dict[PinnedDependency, DependencyConflict] = {}
        self._problem_counts: dict[Dependency, int] = {}

    def find_all_versions(self, dependency: Dependency) -> ConcreteVersionSet:
        """Return a fresh copy of every available version of ``dependency``."""
        cached = self._version_cache.get(dependency)
        if cached is None:
            logger.debug("Fetching available versions of %s", dependency)
            pins = self._call(
                "Listing versions",
                dependency,
                lambda: list(self._versions_for_dependency(dependency)),
            )
            cached = ConcreteVersionSet(ConcreteVersion(_as_pinned(p)) for p in pins)
            self._version_cache[dependency] = cached
        return cached.copy()

    def find_dependencies(
        self, dependency: Dependency, version: ConcreteVersion
    ) -> list[DependencyEntry]:
        """Return the requirements declared by ``dependency`` at ``version``."""
        key = (dependency, version.pinned_version)
        cached = self._dependency_cache.get(key)
        if cached is None:
            logger.debug("Fetching requirements of %s @ %s", dependency, version)
            cached = self._call(
                "Loading requirements",
                dependency,
                lambda: list(self._dependencies_for_dependency(dependency, version.pinned_version)),
            )
            self._dependency_cache[key] = cached
        return list(cached)

    def resolve_reference(self, dependency: Dependency, name: str) -> ConcreteVersion:
        """Resolve a reference name of ``dependency`` to a concrete revision."""
        key = (dependency, name)
        cached = self._reference_cache.get(key)
        if cached is None:
            logger.debug("Resolving reference %r of %s", name, dependency)
            pin = self._call(
                "Resolving reference",
                dependency,
                lambda: _as_pinned(self._resolved_git_reference(dependency, name)),
            )
            cached = ConcreteVersion(pin)
            self._reference_cache[key] = cached
        return cached

    # -- Conflicts ----------------------------------------------------------

    def add_conflict(
        self,
        pinned: PinnedDependency,
        conflicting_with: PinnedDependency | None,
        error: ResolutionError,
    ) -> None:
        """Remember that ``pinned`` cannot be selected with ``conflicting_with``.

        A ``conflicting_with`` of None records a conflict with the root
        requirements. Pairwise conflicts are stored in both directions.
        """
        self._store_conflict(pinned, conflicting_with, error)
        if conflicting_with is not None:
            self._store_conflict(conflicting_with, pinned, error)

    def cached_conflict(self, pinned: PinnedDependency) -> DependencyConflict | None:
        return self._conflict_cache.get(pinned)

    def add_problematic(self, dependency: Dependency) -> None:
        self._problem_counts[dependency] = self._problem_counts.get(dependency, 0) + 1

    def problem_count(self, dependency: Dependency) -> int:
        return self._problem_counts.get(dependency, 0)

    def most_problematic(self, dependencies: Iterable[Dependency]) -> Dependency | None:
        """The dependency that took part in the most conflicts.

        Ties go to the earliest of ``dependencies``. Returns None if none of
        them ever conflicted.
        """
        best: Dependency | None = None
        best_count = 0
        for dependency in dependencies:
            count = self._problem_counts.get(dependency, 0)
            if count > best_count:
                best, best_count = dependency, count
        return best

    def _store_conflict(
        self,
        pinned: PinnedDependency,
        other: PinnedDependency | None,
        error: ResolutionError,
    ) -> None:
        existing = self._conflict_cache.get(pinned)
        if existing is None:
            self._conflict_cache[pinned] = DependencyConflict(
                error, None if other is None else [other]
            )
            is_new = True
        else:
            is_new = existing.add(other)
        if is_new:
            logger.debug("Recorded conflict of %s with %s", pinned, other or "root requirements")
            self.add_problematic(pinned.dependency)

    @staticmethod
    def _call(operation: str, dependency: Dependency, fn: Callable[[], _T]) -> _T:
        try:
            return fn()
        except ResolveKitError:
            raise
        except Exception as exc:
            logger.warning("%s failed for %s: %s", operation, dependency, exc)
            raise CollaboratorError(operation, dependency, str(exc)) from exc
