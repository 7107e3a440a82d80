"""Version specifiers, their intersection, and dependency identities.

This module provides the constraint language used in manifests and in the
transitive requirements of each candidate:

- ``Any``: every version.
- ``AtLeast(v)``: ``>= v``.
- ``CompatibleWith(v)``: ``>= v`` and below the next compatibility boundary
  (next major, or next minor while the major version is 0).
- ``Exactly(v)``: only ``v``.
- ``GitReference(name)``: a branch, tag, or commit, unordered.

Textual syntax follows the familiar manifest conventions: an empty string or
``*`` for any version, ``>= 1.2``, ``~> 1.2``, ``== 1.2.3`` and a double-quoted
reference name such as ``"main"``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import reduce
from typing import ClassVar, Iterable

from resolvekit.core.dependency.version import ConcreteVersion, SemanticVersion
from resolvekit.exceptions import SpecifierParseError


# ---------------------------------------------------------------------------
# VersionSpecifier variants
# ---------------------------------------------------------------------------


class VersionSpecifier:
    """Base class of the closed set of version specifier variants."""

    precedence: ClassVar[int] = 0

    def satisfied_by(
        self, version: ConcreteVersion, resolved: ConcreteVersion | None = None
    ) -> bool:
        raise NotImplementedError

    def describe(self) -> str:
        """Human-readable form used in error messages."""
        return str(self) or "any version"


@dataclass(frozen=True)
class Any(VersionSpecifier):
    """Matches every candidate, semantic or not."""

    precedence: ClassVar[int] = 1

    def satisfied_by(
        self, version: ConcreteVersion, resolved: ConcreteVersion | None = None
    ) -> bool:
        return True

    def __str__(self) -> str:
        return ""


@dataclass(frozen=True)
class AtLeast(VersionSpecifier):
    """Matches semantic candidates greater than or equal to ``version``."""

    version: SemanticVersion
    precedence: ClassVar[int] = 2

    def satisfied_by(
        self, version: ConcreteVersion, resolved: ConcreteVersion | None = None
    ) -> bool:
        sv = version.semantic_version
        return sv is not None and sv >= self.version

    def __str__(self) -> str:
        return f">= {self.version}"


@dataclass(frozen=True)
class CompatibleWith(VersionSpecifier):
    """Matches semantic candidates in ``[version, upper_bound)``."""

    version: SemanticVersion
    precedence: ClassVar[int] = 3

    @property
    def upper_bound(self) -> SemanticVersion:
        """First version past the compatibility window."""
        if self.version.major > 0:
            return SemanticVersion(self.version.major + 1, 0, 0)
        return SemanticVersion(0, self.version.minor + 1, 0)

    def satisfied_by(
        self, version: ConcreteVersion, resolved: ConcreteVersion | None = None
    ) -> bool:
        sv = version.semantic_version
        return sv is not None and self.version <= sv < self.upper_bound

    def __str__(self) -> str:
        return f"~> {self.version}"


@dataclass(frozen=True)
class Exactly(VersionSpecifier):
    """Matches only the candidate whose release number equals ``version``."""

    version: SemanticVersion
    precedence: ClassVar[int] = 4

    def satisfied_by(
        self, version: ConcreteVersion, resolved: ConcreteVersion | None = None
    ) -> bool:
        return version.semantic_version == self.version

    def __str__(self) -> str:
        return f"== {self.version}"


@dataclass(frozen=True)
class GitReference(VersionSpecifier):
    """Matches the named reference, or the revision it resolved to.

    References carry no ordering, so only identity counts: a candidate
    satisfies this specifier when its commitish is ``name`` itself, or when
    it equals ``resolved`` (the revision the reference pointed at when the
    resolver looked it up).
    """

    name: str
    precedence: ClassVar[int] = 5

    def satisfied_by(
        self, version: ConcreteVersion, resolved: ConcreteVersion | None = None
    ) -> bool:
        if version.pinned_version.commitish == self.name:
            return True
        return resolved is not None and version.pinned_version == resolved.pinned_version

    def __str__(self) -> str:
        return f'"{self.name}"'


def satisfies(specifier: VersionSpecifier, version: ConcreteVersion) -> bool:
    """Return True if ``version`` is acceptable under ``specifier``."""
    return specifier.satisfied_by(version)


# ---------------------------------------------------------------------------
# Intersection
# ---------------------------------------------------------------------------


def _same_window(a: SemanticVersion, b: SemanticVersion) -> bool:
    """Whether two lower bounds share a ``CompatibleWith`` window."""
    if a.major != b.major:
        return False
    return a.major > 0 or a.minor == b.minor


def _intersect_at_least_compatible(
    at_least: SemanticVersion, compatible: CompatibleWith
) -> VersionSpecifier | None:
    if at_least <= compatible.version:
        return compatible
    if at_least < compatible.upper_bound:
        return CompatibleWith(at_least)
    return None


def intersect(a: VersionSpecifier, b: VersionSpecifier) -> VersionSpecifier | None:
    """Return the tightest specifier satisfied exactly by versions satisfying both.

    Args:
        a: First specifier.
        b: Second specifier.

    Returns:
        The intersection, or None when no version can satisfy both.
    """
    if isinstance(a, Any):
        return b
    if isinstance(b, Any):
        return a

    if isinstance(a, GitReference) or isinstance(b, GitReference):
        return a if a == b else None

    if isinstance(a, Exactly):
        return a if b.satisfied_by(ConcreteVersion.from_semantic(a.version)) else None
    if isinstance(b, Exactly):
        return b if a.satisfied_by(ConcreteVersion.from_semantic(b.version)) else None

    if isinstance(a, AtLeast) and isinstance(b, AtLeast):
        return AtLeast(max(a.version, b.version))
    if isinstance(a, AtLeast) and isinstance(b, CompatibleWith):
        return _intersect_at_least_compatible(a.version, b)
    if isinstance(a, CompatibleWith) and isinstance(b, AtLeast):
        return _intersect_at_least_compatible(b.version, a)

    if isinstance(a, CompatibleWith) and isinstance(b, CompatibleWith):
        if not _same_window(a.version, b.version):
            return None
        return CompatibleWith(max(a.version, b.version))

    raise TypeError(f"Unsupported specifier combination: {a!r}, {b!r}")


def intersect_all(specifiers: Iterable[VersionSpecifier]) -> VersionSpecifier | None:
    """Fold ``intersect`` over several specifiers; an empty input yields ``Any``."""

    def _step(left: VersionSpecifier | None, right: VersionSpecifier) -> VersionSpecifier | None:
        return None if left is None else intersect(left, right)

    return reduce(_step, specifiers, Any())


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_SPECIFIER_RE = re.compile(r"^(?P<op>==|>=|~>)\s*(?P<ver>\S+)$")
_REFERENCE_RE = re.compile(r'^"(?P<name>[^"]+)"$')

_OPERATORS: dict[str, type] = {
    "==": Exactly,
    ">=": AtLeast,
    "~>": CompatibleWith,
}


def parse_specifier(text: str) -> VersionSpecifier:
    """Parse a manifest-style specifier string.

    Args:
        text: e.g. ``""``, ``"*"``, ``">= 1.0"``, ``"~> 0.4.2"``,
            ``"== 2.0.0"`` or ``'"develop"'``.

    Returns:
        The corresponding ``VersionSpecifier``.

    Raises:
        SpecifierParseError: If the text matches no known form, or the
            version after an operator is not a release number.
    """
    stripped = text.strip()
    if stripped in ("", "*"):
        return Any()

    ref = _REFERENCE_RE.match(stripped)
    if ref:
        return GitReference(ref.group("name"))

    m = _SPECIFIER_RE.match(stripped)
    if not m:
        raise SpecifierParseError(f"Invalid version specifier: {text!r}")

    version = SemanticVersion.parse(m.group("ver"))
    if version is None:
        raise SpecifierParseError(
            f"Expected a version number after {m.group('op')!r} in {text!r}"
        )
    return _OPERATORS[m.group("op")](version)


# ---------------------------------------------------------------------------
# Dependency identity
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class Dependency:
    """Identity of a dependency, independent of any version.

    Attributes:
        origin: Where the dependency lives, e.g. ``"github.com/owner/Repo"``.
        name: Short name. Two origins can share a name (forks).
    """

    origin: str
    name: str

    @classmethod
    def from_origin(cls, origin: str) -> Dependency:
        """Derive the name from the last path component of ``origin``."""
        trimmed = origin.rstrip("/")
        name = trimmed.rsplit("/", 1)[-1]
        if name.endswith(".git"):
            name = name[: -len(".git")]
        return cls(origin=origin, name=name)

    def __str__(self) -> str:
        return self.origin
