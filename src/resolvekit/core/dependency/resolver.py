"""Backtracking dependency resolution.

The resolver performs a depth-first, newest-version-first search with
chronological backtracking:

1. Seed a ``DependencySet`` with the root requirements.
2. Commit the next unresolved dependency to its best remaining candidate
   (``DependencySet.pop_subset``) and merge that candidate's own
   requirements into the branch.
3. Recurse. A rejected branch is discarded and the runner-up candidate is
   tried; the first complete branch wins.

All expensive lookups go through a ``DependencyRetriever``, so each
dependency's versions and each candidate's requirements are fetched at
most once per resolution, however many branches reach them.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Mapping

from resolvekit.core.dependency.constraints import Dependency, VersionSpecifier
from resolvekit.core.dependency.dependency_set import DependencySet
from resolvekit.core.dependency.retriever import (
    DependenciesForDependency,
    DependencyEntry,
    DependencyRetriever,
    ResolvedGitReference,
    VersionsForDependency,
)
from resolvekit.core.dependency.version import PinnedVersion
from resolvekit.exceptions import DependencyCycleError, ExhaustedSearchError

logger = logging.getLogger(__name__)


class _ResolverState(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class BacktrackingResolver:
    """Resolves a dependency graph to one version per dependency.

    The resolver is synchronous and performs no I/O of its own; the three
    lookups are injected and may be backed by a network, a cache on disk,
    or an in-memory ``DependencyIndex``.

    Args:
        versions_for_dependency: Lists every selectable revision of a
            dependency.
        dependencies_for_dependency: Lists the ``(dependency, specifier)``
            requirements of one revision.
        resolved_git_reference: Resolves a reference name (branch, tag,
            symbolic ref) of a dependency to a revision.

    Example::

        index = DependencyIndex.from_dict(data)
        resolver = BacktrackingResolver(*index.collaborators())
        mantle = Dependency.from_origin("github.com/Mantle/Mantle")
        resolver.resolve({mantle: AtLeast(SemanticVersion(1))})
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

    def resolve(
        self,
        dependencies: Mapping[Dependency, VersionSpecifier] | Iterable[DependencyEntry],
        last_resolved: Mapping[Dependency, PinnedVersion] | None = None,
        dependencies_to_update: Iterable[str] | None = None,
    ) -> dict[Dependency, PinnedVersion]:
        """Pick one version of every dependency reachable from ``dependencies``.

        Args:
            dependencies: Root requirements, as a mapping or as
                ``(dependency, specifier)`` pairs (pairs may repeat a
                dependency; every specifier applies).
            last_resolved: Versions chosen by a previous resolution.
            dependencies_to_update: Names of dependencies allowed to move
                away from ``last_resolved``. None or empty updates all.

        Returns:
            Mapping of every dependency in the accepted branch to its
            selected revision.

        Raises:
            UnsatisfiableConstraintsError: The requirements admit no common
                version of some dependency.
            ExhaustedSearchError: Every branch was rejected.
            DependencyCycleError: The only candidates left declare a cycle.
            IncompatibleDependenciesError: Same-named dependencies could
                not be reduced to one.
            CollaboratorError: One of the injected lookups raised.
        """
        if isinstance(dependencies, Mapping):
            entries = list(dependencies.items())
        else:
            entries = list(dependencies)
        updatable_names = set(dependencies_to_update or ())
        if updatable_names:
            # A named update only touches what was resolved before or was named.
            pinned = last_resolved or {}
            entries = [
                (dependency, specifier)
                for dependency, specifier in entries
                if dependency.name in updatable_names or dependency in pinned
            ]
        roots = list(dict.fromkeys(dependency for dependency, _ in entries))

        retriever = DependencyRetriever(
            self._versions_for_dependency,
            self._dependencies_for_dependency,
            self._resolved_git_reference,
        )
        dependency_set = DependencySet(
            retriever,
            pinned_versions=last_resolved,
            updatable_names=updatable_names,
        )
        dependency_set.expand(None, entries)

        state, accepted = self._backtrack(dependency_set, roots)
        if state is _ResolverState.REJECTED:
            error = dependency_set.rejection_error or ExhaustedSearchError(roots)
            logger.info("Resolution failed: %s", error)
            raise error

        accepted.eliminate_same_named_dependencies(entries)
        resolved = accepted.resolved_dependencies
        logger.info("Resolved %d dependencies", len(resolved))
        return resolved

    def _backtrack(
        self, dependency_set: DependencySet, roots: list[Dependency]
    ) -> tuple[_ResolverState, DependencySet]:
        """Explore ``dependency_set`` and its sub-branches depth first."""
        if dependency_set.is_rejected:
            return _ResolverState.REJECTED, dependency_set
        if dependency_set.is_complete:
            cycle = dependency_set.find_cycle(roots)
            if cycle is not None:
                dependency_set.reject(DependencyCycleError(cycle))
                return _ResolverState.REJECTED, dependency_set
            return _ResolverState.ACCEPTED, dependency_set

        last_rejection = None
        while True:
            subset = dependency_set.pop_subset()
            if subset is None:
                # Every candidate of the pending dependency was rejected.
                if dependency_set.rejection_error is None and last_rejection is not None:
                    dependency_set.reject(last_rejection)
                return _ResolverState.REJECTED, dependency_set

            state, result = self._backtrack(subset, roots)
            if state is _ResolverState.ACCEPTED:
                return state, result
            if subset.rejection_error is not None:
                last_rejection = subset.rejection_error
            if subset is dependency_set:
                return _ResolverState.REJECTED, dependency_set
