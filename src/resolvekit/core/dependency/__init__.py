"""Backtracking dependency resolution.

This package selects exactly one version of every dependency reachable from
a set of root requirements, such that every requirement declared along the
way is satisfied. Candidates are explored newest-first; a branch that
empties some candidate set is abandoned and the runner-up is tried.

All public names are re-exported here, so callers can write
``from resolvekit.core.dependency import BacktrackingResolver``.

Model
-----
- **Dependency**: identity of a package (origin plus short name).
- **PinnedVersion**: opaque revision identifier (tag, branch, commit).
- **ConcreteVersion**: a pinned revision plus its parsed release number,
  ordered by preference.
- **VersionSpecifier**: ``Any``, ``AtLeast``, ``CompatibleWith``,
  ``Exactly`` or ``GitReference``.
"""

from resolvekit.core.dependency.version import (
    ConcreteVersion,
    PinnedVersion,
    SemanticVersion,
)
from resolvekit.core.dependency.constraints import (
    Any,
    AtLeast,
    CompatibleWith,
    Dependency,
    Exactly,
    GitReference,
    VersionSpecifier,
    intersect,
    intersect_all,
    parse_specifier,
    satisfies,
)
from resolvekit.core.dependency.version_set import (
    ConcreteVersionSet,
    Definition,
    PinnedDependency,
)
from resolvekit.core.dependency.retriever import (
    DependencyConflict,
    DependencyEntry,
    DependencyRetriever,
)
from resolvekit.core.dependency.dependency_set import DependencySet
from resolvekit.core.dependency.resolver import BacktrackingResolver
from resolvekit.core.dependency.index import (
    DependencyIndex,
    parse_requirements,
)

__all__ = [
    "SemanticVersion",
    "PinnedVersion",
    "ConcreteVersion",
    "VersionSpecifier",
    "Any",
    "AtLeast",
    "CompatibleWith",
    "Exactly",
    "GitReference",
    "Dependency",
    "intersect",
    "intersect_all",
    "parse_specifier",
    "satisfies",
    "ConcreteVersionSet",
    "Definition",
    "PinnedDependency",
    "DependencyConflict",
    "DependencyEntry",
    "DependencyRetriever",
    "DependencySet",
    "BacktrackingResolver",
    "DependencyIndex",
    "parse_requirements",
]
