"""Search state of the backtracking resolver.

A ``DependencySet`` maps every dependency discovered so far to its
remaining ``ConcreteVersionSet`` and remembers which of them are still
*unresolved*: not yet narrowed to a single version whose own requirements
have been merged in. A set is

- **rejected** once some candidate set becomes empty (``rejection_error``
  explains why), and
- **complete** once no unresolved dependency remains. At that point every
  candidate set holds exactly one version.

Forking the search (``pop_subset``) deep-copies the state, so sibling
branches never share mutable candidate sets.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Iterator, Mapping

from resolvekit.core.dependency.constraints import Dependency, GitReference, VersionSpecifier
from resolvekit.core.dependency.retriever import (
    DependencyConflict,
    DependencyEntry,
    DependencyRetriever,
)
from resolvekit.core.dependency.version import ConcreteVersion, PinnedVersion
from resolvekit.core.dependency.version_set import (
    ConcreteVersionSet,
    Definition,
    PinnedDependency,
)
from resolvekit.exceptions import (
    IncompatibleDependenciesError,
    IncompatibleRequirementsError,
    RequiredVersionNotFoundError,
    ResolutionError,
)

logger = logging.getLogger(__name__)


class DependencySet:
    """Candidate sets for every known dependency within one search branch.

    Args:
        retriever: Caching access to versions, requirements and references.
            Shared by every branch of one resolution.
        pinned_versions: Previously resolved versions, used for dependencies
            that are not being updated.
        updatable_names: Names of dependencies that may move away from their
            pinned version. Empty means every dependency is updatable.
    """

    def __init__(
        self,
        retriever: DependencyRetriever,
        pinned_versions: Mapping[Dependency, PinnedVersion] | None = None,
        updatable_names: Iterable[str] = (),
    ) -> None:
        self._retriever = retriever
        self._pinned_versions: Mapping[Dependency, PinnedVersion] = dict(pinned_versions or {})
        self._updatable_names: set[str] = set(updatable_names)
        self._contents: dict[Dependency, ConcreteVersionSet] = {}
        # dict used as an insertion-ordered set
        self._unresolved: dict[Dependency, None] = {}
        self.rejection_error: ResolutionError | None = None

    # -- State --------------------------------------------------------------

    @property
    def is_rejected(self) -> bool:
        return self.rejection_error is not None

    @property
    def is_complete(self) -> bool:
        return not self._unresolved

    @property
    def is_accepted(self) -> bool:
        return self.is_complete and not self.is_rejected

    @property
    def unresolved_dependencies(self) -> list[Dependency]:
        return list(self._unresolved)

    @property
    def resolved_dependencies(self) -> dict[Dependency, PinnedVersion]:
        """Most preferred remaining version of every dependency."""
        return {
            dependency: versions.first.pinned_version
            for dependency, versions in self._contents.items()
            if versions.first is not None
        }

    def versions(self, dependency: Dependency) -> ConcreteVersionSet | None:
        return self._contents.get(dependency)

    def __contains__(self, dependency: object) -> bool:
        return dependency in self._contents

    def __iter__(self) -> Iterator[Dependency]:
        return iter(self._contents)

    def is_updatable(self, dependency: Dependency) -> bool:
        return not self._updatable_names or dependency.name in self._updatable_names

    def copy(self) -> DependencySet:
        """Deep copy of the candidate sets; the retriever is shared."""
        clone = DependencySet(self._retriever, self._pinned_versions)
        clone._updatable_names = set(self._updatable_names)
        clone._contents = {dep: versions.copy() for dep, versions in self._contents.items()}
        clone._unresolved = dict(self._unresolved)
        clone.rejection_error = self.rejection_error
        return clone

    def reject(self, error: ResolutionError) -> None:
        logger.debug("Rejecting dependency set: %s", error)
        self.rejection_error = error

    # -- Narrowing ----------------------------------------------------------

    def expand(
        self,
        parent: PinnedDependency | None,
        entries: Iterable[DependencyEntry],
        force_updatable: bool = False,
    ) -> bool:
        """Apply the requirements declared by ``parent`` (None for the root).

        Stops at the first requirement that empties a candidate set.

        Returns:
            False if the set was rejected.
        """
        for dependency, specifier in entries:
            if force_updatable and self._updatable_names:
                self._updatable_names.add(dependency.name)
            updatable = force_updatable or self.is_updatable(dependency)
            if not self._process(dependency, Definition(specifier, parent), updatable):
                return False
        return True

    def narrow(
        self,
        dependency: Dependency,
        specifier: VersionSpecifier,
        declared_by: PinnedDependency | None = None,
    ) -> bool:
        """Seed or tighten the candidate set of a single dependency.

        Returns:
            False if the set was rejected.
        """
        return self._process(
            dependency, Definition(specifier, declared_by), self.is_updatable(dependency)
        )

    def _process(self, dependency: Dependency, definition: Definition, updatable: bool) -> bool:
        specifier = definition.specifier
        existing = self._contents.get(dependency)

        if existing is None or (existing.is_pinned and updatable):
            versions = self._candidates(dependency, specifier, updatable)
            if existing is not None:
                # A pinned set is being released: reapply what was already declared.
                for previous in existing.definitions:
                    self._constrain(versions, dependency, previous.specifier)
                    versions.add_definition(previous)
            versions.add_definition(definition)
            self._contents[dependency] = versions
            if not versions:
                error = RequiredVersionNotFoundError(dependency, specifier)
                # Without pins every branch sees the same available versions.
                if definition.declared_by is not None and not self._updatable_names:
                    self._retriever.add_conflict(definition.declared_by, None, error)
                self._fail(dependency, error)
                return False
            self._unresolved[dependency] = None
            return True

        conflicting = existing.conflicting_definition(specifier)
        previous = existing.definitions[-1] if existing.definitions else None
        self._constrain(existing, dependency, specifier)
        existing.add_definition(definition)
        if existing:
            return True

        culprit = conflicting or previous
        if culprit is None:
            self._fail(dependency, RequiredVersionNotFoundError(dependency, specifier))
            return False

        error = IncompatibleRequirementsError(
            dependency,
            (culprit.specifier, culprit.declared_by),
            (specifier, definition.declared_by),
        )
        if conflicting is not None:
            self._remember_conflict(conflicting, definition, error)
        self._fail(dependency, error)
        return False

    def _fail(self, dependency: Dependency, error: ResolutionError) -> None:
        self.reject(error)
        self._retriever.add_problematic(dependency)

    def _remember_conflict(
        self, existing: Definition, new: Definition, error: ResolutionError
    ) -> None:
        """Record two definitions that no version can satisfy together.

        Reference specifiers are skipped: a pinned set ignores them, so the
        same pair may be compatible in another branch.
        """
        if isinstance(existing.specifier, GitReference) or isinstance(new.specifier, GitReference):
            return
        first, second = new.declared_by, existing.declared_by
        if first is None:
            first, second = second, None
        if first is not None:
            self._retriever.add_conflict(first, second, error)

    def _candidates(
        self, dependency: Dependency, specifier: VersionSpecifier, updatable: bool
    ) -> ConcreteVersionSet:
        pinned = self._pinned_versions.get(dependency)
        if not updatable and pinned is not None:
            versions = ConcreteVersionSet([ConcreteVersion(pinned)])
            versions.is_pinned = True
        elif isinstance(specifier, GitReference):
            versions = ConcreteVersionSet(
                [self._retriever.resolve_reference(dependency, specifier.name)]
            )
        else:
            versions = self._retriever.find_all_versions(dependency)
        self._constrain(versions, dependency, specifier)
        return versions

    def _constrain(
        self, versions: ConcreteVersionSet, dependency: Dependency, specifier: VersionSpecifier
    ) -> None:
        if isinstance(specifier, GitReference):
            if versions.is_pinned:
                # The pin is what the reference resolved to last time.
                return
            resolved = self._retriever.resolve_reference(dependency, specifier.name)
            versions.retain_compatible(specifier, resolved)
        else:
            versions.retain_compatible(specifier)

    # -- Branching ----------------------------------------------------------

    def next_unresolved_dependency(self) -> Dependency | None:
        """The unresolved dependency most often involved in conflicts so far.

        Falls back to discovery order when none has conflicted.
        """
        if not self._unresolved:
            return None
        return self._retriever.most_problematic(self._unresolved) or next(iter(self._unresolved))

    def pop_subset(self) -> DependencySet | None:
        """Commit the next unresolved dependency to its best candidate.

        If that dependency still has several candidates, a copy is returned
        in which it is narrowed to the best one, and the best one is removed
        from this set so the next call tries the runner-up. With a single
        candidate the receiver itself is narrowed and returned.

        A candidate already known to conflict with the root requirements is
        rejected without expanding it. Versions known to conflict with the
        chosen candidate are removed from the returned set.

        Returns:
            The set to explore next (possibly rejected), or None when there
            is nothing left to try.
        """
        if self.is_complete or self.is_rejected:
            return None

        dependency = self.next_unresolved_dependency()
        versions = self._contents[dependency]
        version = versions.first
        if version is None:
            return None

        pinned = PinnedDependency(dependency, version)
        conflict = self._retriever.cached_conflict(pinned)
        if conflict is not None and conflict.conflicting is None:
            logger.debug("Skipping %s: conflicts with the root requirements", pinned)
            subset = self.copy()
            subset.reject(conflict.error)
            versions.remove(version)
            if not versions:
                self.reject(conflict.error)
            return subset

        if len(versions) > 1:
            subset = self.copy()
            subset._contents[dependency].remove_all_except(version)
            versions.remove(version)
        else:
            subset = self

        if conflict is not None:
            subset._exclude_conflicts(conflict)
        if subset.is_rejected:
            return subset

        remaining = 0 if subset is self else len(versions)
        logger.debug("Trying %s (%d alternatives left)", pinned, remaining)
        requirements = self._retriever.find_dependencies(dependency, version)
        if subset.expand(pinned, requirements, force_updatable=self.is_updatable(dependency)):
            subset._unresolved.pop(dependency, None)
        return subset

    def _exclude_conflicts(self, conflict: DependencyConflict) -> None:
        for other in conflict.conflicting or ():
            versions = self._contents.get(other.dependency)
            if versions is not None and versions.remove(other.version) and not versions:
                self.reject(conflict.error)
                return

    # -- Validation ---------------------------------------------------------

    def find_cycle(self, roots: Iterable[Dependency]) -> list[Dependency] | None:
        """Walk the chosen versions from ``roots`` looking for a circular requirement.

        Returns:
            The cycle as a path that starts and ends with the same
            dependency, or None.
        """
        path: list[Dependency] = []
        finished: set[Dependency] = set()

        def _visit(dependency: Dependency) -> list[Dependency] | None:
            if dependency in path:
                return path[path.index(dependency):] + [dependency]
            if dependency in finished:
                return None
            versions = self._contents.get(dependency)
            if versions is None or versions.first is None:
                finished.add(dependency)
                return None

            path.append(dependency)
            for child, _ in self._retriever.find_dependencies(dependency, versions.first):
                cycle = _visit(child)
                if cycle is not None:
                    return cycle
            path.pop()
            finished.add(dependency)
            return None

        for root in roots:
            cycle = _visit(root)
            if cycle is not None:
                return cycle
        return None

    def eliminate_same_named_dependencies(self, root_entries: Iterable[DependencyEntry]) -> None:
        """Keep one dependency per name, preferring the root manifest's most specific one.

        Forks may override their upstream: when several origins share a
        name, the one declared in the root manifest with the highest
        specifier precedence wins and the others are dropped.

        Raises:
            IncompatibleDependenciesError: If no declared dependency wins
                outright (none declared at the root, or more than one).
        """
        root_specifiers: dict[Dependency, VersionSpecifier] = dict(root_entries)
        by_name: dict[str, list[Dependency]] = defaultdict(list)
        for dependency in self._contents:
            by_name[dependency.name].append(dependency)

        for name in sorted(by_name):
            same_named = by_name[name]
            if len(same_named) < 2:
                continue

            same_named.sort(
                key=lambda d: (
                    -(root_specifiers[d].precedence if d in root_specifiers else 0),
                    d,
                )
            )
            winner, runner_up = same_named[0], same_named[1]
            if winner not in root_specifiers or runner_up in root_specifiers:
                raise IncompatibleDependenciesError(same_named)

            for loser in same_named[1:]:
                logger.info("Dropping %s in favour of %s", loser, winner)
                del self._contents[loser]
