"""In-memory dependency index.

``DependencyIndex`` stores, for each dependency, its published revisions,
the requirements each revision declares, and named references (branches,
tags) pointing at revisions. It provides the three lookups the resolver
needs, which makes it the natural source for tests, fixtures, and the
``resolvekit resolve --index`` command.

Index document format (as loaded from YAML or JSON)::

    dependencies:
      github.com/owner/A:
        versions:
          "2.2.0":
            requires:
              github.com/owner/B: "~> 1.0"
          "2.1.0": {}
        references:
          main: "2.2.0"
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Iterable

from resolvekit.core.dependency.constraints import (
    Dependency,
    VersionSpecifier,
    parse_specifier,
)
from resolvekit.core.dependency.retriever import DependencyEntry
from resolvekit.core.dependency.version import PinnedVersion
from resolvekit.exceptions import ManifestError, ResolveKitError


class DependencyIndex:
    """Versions, requirements, and references for a set of dependencies.

    Thread safety: This class is NOT thread-safe. External synchronization is
    required for concurrent access.
    """

    def __init__(self) -> None:
        self._versions: dict[Dependency, dict[PinnedVersion, list[DependencyEntry]]] = {}
        self._references: dict[Dependency, dict[str, PinnedVersion]] = defaultdict(dict)

    @property
    def dependencies(self) -> list[Dependency]:
        return sorted(self._versions)

    def add_version(
        self,
        dependency: Dependency,
        version: str,
        requires: Iterable[DependencyEntry] = (),
    ) -> None:
        """Publish ``version`` of ``dependency`` with its requirements.

        Re-adding an existing version replaces its requirements.
        """
        self._versions.setdefault(dependency, {})[PinnedVersion(version)] = list(requires)

    def add_reference(self, dependency: Dependency, name: str, revision: str) -> None:
        """Point reference ``name`` of ``dependency`` at ``revision``."""
        self._references[dependency][name] = PinnedVersion(revision)

    # -- Lookups ------------------------------------------------------------

    def versions_for_dependency(self, dependency: Dependency) -> list[PinnedVersion]:
        """Every published revision, unordered. Empty if the dependency is unknown."""
        return list(self._versions.get(dependency, {}))

    def dependencies_for_dependency(
        self, dependency: Dependency, version: PinnedVersion
    ) -> list[DependencyEntry]:
        """Requirements of one revision.

        Raises:
            KeyError: If the revision was never published.
        """
        try:
            return list(self._versions[dependency][version])
        except KeyError:
            raise KeyError(f"{dependency} has no revision {version}") from None

    def resolved_git_reference(self, dependency: Dependency, name: str) -> PinnedVersion:
        """Resolve a reference name; a published revision resolves to itself.

        Raises:
            LookupError: If ``name`` is neither a reference nor a revision.
        """
        target = self._references.get(dependency, {}).get(name)
        if target is not None:
            return target
        if PinnedVersion(name) in self._versions.get(dependency, {}):
            return PinnedVersion(name)
        raise LookupError(f"{dependency} has no reference named {name!r}")

    def collaborators(self) -> tuple[Any, Any, Any]:
        """The three lookups, in ``BacktrackingResolver`` argument order."""
        return (
            self.versions_for_dependency,
            self.dependencies_for_dependency,
            self.resolved_git_reference,
        )

    # -- Graph queries ------------------------------------------------------

    def detect_cycles(self) -> list[list[Dependency]]:
        """Find circular requirements using DFS coloring.

        Versions are collapsed to dependency level, so a cycle is reported
        when any revision of A requires B and any revision of B requires A.

        Returns:
            Cycles as paths starting and ending with the same dependency.
        """
        adj: dict[Dependency, set[Dependency]] = defaultdict(set)
        for dependency, versions in self._versions.items():
            for requires in versions.values():
                for child, _ in requires:
                    adj[dependency].add(child)

        WHITE, GRAY, BLACK = 0, 1, 2
        color: dict[Dependency, int] = defaultdict(int)
        stack: list[Dependency] = []
        cycles: list[list[Dependency]] = []

        def _dfs(u: Dependency) -> None:
            color[u] = GRAY
            stack.append(u)
            for v in sorted(adj.get(u, ())):
                if color[v] == GRAY:
                    cycles.append(stack[stack.index(v):] + [v])
                elif color[v] == WHITE:
                    _dfs(v)
            stack.pop()
            color[u] = BLACK

        for dependency in sorted(adj):
            if color[dependency] == WHITE:
                _dfs(dependency)
        return cycles

    # -- Construction -------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DependencyIndex:
        """Build an index from a parsed index document.

        Raises:
            ManifestError: If the document does not have the expected shape
                or contains an invalid specifier.
        """
        index = cls()
        entries = data.get("dependencies") if isinstance(data, dict) else None
        if not isinstance(entries, dict):
            raise ManifestError("Index must contain a 'dependencies' mapping")

        for origin, entry in entries.items():
            dependency = Dependency.from_origin(str(origin))
            entry = entry or {}
            if not isinstance(entry, dict):
                raise ManifestError(f"Index entry for {origin!r} must be a mapping")

            for version, details in (entry.get("versions") or {}).items():
                details = details or {}
                if not isinstance(details, dict):
                    raise ManifestError(f"Version {version!r} of {origin!r} must be a mapping")
                requires = details.get("requires") or {}
                index.add_version(dependency, str(version), parse_requirements(requires, origin))
            for name, revision in (entry.get("references") or {}).items():
                index.add_reference(dependency, str(name), str(revision))
        return index


def parse_requirements(requires: Any, context: str) -> list[DependencyEntry]:
    """Turn an ``{origin: specifier-string}`` mapping into requirement pairs.

    Raises:
        ManifestError: If ``requires`` is not a mapping or a specifier is
            malformed.
    """
    if not isinstance(requires, dict):
        raise ManifestError(f"Requirements of {context!r} must be a mapping")
    pairs: list[DependencyEntry] = []
    for origin, text in requires.items():
        try:
            specifier: VersionSpecifier = parse_specifier("" if text is None else str(text))
        except ResolveKitError as exc:
            raise ManifestError(f"{context}: {exc}") from exc
        pairs.append((Dependency.from_origin(str(origin)), specifier))
    return pairs
