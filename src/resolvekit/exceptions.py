"""ResolveKit exception hierarchy.

Every public exception derives from ResolveKitError. Failures of the search
itself derive from ResolutionError; problems with input files raise
ManifestError, SpecifierParseError or LockfileError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Sequence

if TYPE_CHECKING:  # pragma: no cover
    from resolvekit.core.dependency.constraints import Dependency, VersionSpecifier


class ResolveKitError(Exception):
    """Base exception for all ResolveKit errors."""


class SpecifierParseError(ResolveKitError):
    """Raised when a version specifier string cannot be parsed."""


class ManifestError(ResolveKitError):
    """Raised when a manifest or index file is malformed.

    Covers unreadable YAML, missing sections, and entries of the wrong
    type encountered while loading CLI input files.
    """


class LockfileError(ResolveKitError):
    """Raised when a resolved lockfile cannot be read or is inconsistent."""


class ResolutionError(ResolveKitError):
    """Raised when dependency resolution fails.

    Covers unsatisfiable version constraints, circular dependencies,
    exhausted searches, and failures of the injected data sources.
    """


class UnsatisfiableConstraintsError(ResolutionError):
    """Two or more specifiers admit no common version of a dependency."""


class RequiredVersionNotFoundError(UnsatisfiableConstraintsError):
    """No available version of a dependency satisfies a specifier."""

    def __init__(self, dependency: Dependency, specifier: VersionSpecifier) -> None:
        self.dependency = dependency
        self.specifier = specifier
        super().__init__(
            f"No available version for {dependency} satisfies the requirement: "
            f"{specifier.describe()}"
        )


class IncompatibleRequirementsError(UnsatisfiableConstraintsError):
    """Requirements for the same dependency have no version in common.

    Attributes:
        dependency: The dependency whose candidate set became empty.
        existing: ``(specifier, declared_by)`` already applied to it.
        new: ``(specifier, declared_by)`` that emptied the candidate set.
            ``declared_by`` is None for root requirements.
    """

    def __init__(
        self,
        dependency: Dependency,
        existing: tuple[VersionSpecifier, object | None],
        new: tuple[VersionSpecifier, object | None],
    ) -> None:
        self.dependency = dependency
        self.existing = existing
        self.new = new
        super().__init__(
            f"Could not pick a version for {dependency}, due to mutually "
            f"incompatible requirements:\n"
            f"\t{existing[0].describe()} ({_declared_by(existing[1])})\n"
            f"\t{new[0].describe()} ({_declared_by(new[1])})"
        )


class ExhaustedSearchError(ResolutionError):
    """Every branch of the search was explored and rejected."""

    def __init__(self, dependencies: Iterable[Dependency]) -> None:
        self.dependencies = sorted(dependencies)
        names = ", ".join(str(d) for d in self.dependencies)
        super().__init__(
            f"The dependency graph could not be resolved for: {names}"
        )


class DependencyCycleError(ResolutionError):
    """The chosen versions declare a circular dependency."""

    def __init__(self, cycle: Sequence[Dependency]) -> None:
        self.cycle = list(cycle)
        path = " -> ".join(str(d) for d in self.cycle)
        super().__init__(f"The dependency graph contains a cycle: {path}")


class IncompatibleDependenciesError(ResolutionError):
    """Several dependencies share a name and none takes precedence."""

    def __init__(self, dependencies: Iterable[Dependency]) -> None:
        self.dependencies = sorted(dependencies)
        listed = ", ".join(d.origin for d in self.dependencies)
        super().__init__(
            f"Found dependencies with the same name but different origins "
            f"({listed}); declare exactly one of them with a version "
            f"requirement in the root manifest"
        )


class CollaboratorError(ResolutionError):
    """A version, dependency, or reference lookup raised an exception.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, operation: str, dependency: Dependency, detail: str) -> None:
        self.operation = operation
        self.dependency = dependency
        super().__init__(f"{operation} failed for {dependency}: {detail}")


def _declared_by(parent: object | None) -> str:
    return "root manifest" if parent is None else f"required by {parent}"
