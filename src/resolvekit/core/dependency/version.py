"""Semantic, pinned, and concrete versions.

A dependency's candidates arrive as opaque ``PinnedVersion`` identifiers
(tag names, branch names, commit hashes). Those that look like a release
number are additionally parsed into a ``SemanticVersion``; the two are
unified by ``ConcreteVersion``, whose natural ordering is the resolver's
preference order:

1. Semantic versions first, newest (numerically greatest) first.
2. Non-semantic identifiers afterwards, in descending lexicographic order.

Sorting a list of ``ConcreteVersion`` ascending therefore yields the most
preferred candidate at index 0.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field

# Optional leading "v", then one to three dot-separated decimal components.
_SEMVER_RE = re.compile(r"v?([0-9]+)(?:\.([0-9]+))?(?:\.([0-9]+))?\Z", re.ASCII)


# ---------------------------------------------------------------------------
# SemanticVersion
# ---------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class SemanticVersion:
    """A ``major.minor.patch`` release number.

    Ordering is numeric and component-wise (``1.10.0 > 1.2.0``), which the
    dataclass-generated comparison over the integer fields provides.

    Attributes:
        major: Incremented for incompatible API changes.
        minor: Incremented for backwards-compatible enhancements.
        patch: Incremented for backwards-compatible bug fixes.
    """

    major: int
    minor: int = 0
    patch: int = 0

    def __post_init__(self) -> None:
        if min(self.major, self.minor, self.patch) < 0:
            raise ValueError(f"Version components must be non-negative: {self}")

    @classmethod
    def parse(cls, text: str) -> SemanticVersion | None:
        """Parse a tag-like string, or return None if it is not a release number.

        Missing minor/patch components default to 0. Pre-release and build
        suffixes (``2.8-alpha``, ``1.0.0+42``) are not accepted.

        Args:
            text: Candidate string, e.g. ``"v1.2"`` or ``"1.2.3"``.

        Returns:
            The parsed version, or None.
        """
        m = _SEMVER_RE.match(text)
        if not m:
            return None
        major, minor, patch = (int(g) if g is not None else 0 for g in m.groups())
        return cls(major, minor, patch)

    @property
    def components(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


# ---------------------------------------------------------------------------
# PinnedVersion
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PinnedVersion:
    """An immutable revision a dependency can be pinned to.

    Attributes:
        commitish: Tag name, branch name, or commit hash.
    """

    commitish: str

    def __str__(self) -> str:
        return self.commitish


# ---------------------------------------------------------------------------
# ConcreteVersion
# ---------------------------------------------------------------------------


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class ConcreteVersion:
    """A selectable candidate: a pinned revision plus its parsed release number.

    ``semantic_version`` is derived from ``pinned_version`` at construction
    and cannot be set independently.

    Equality follows the semantic component when both sides have one, so
    ``v1.0`` and ``1.0.0`` are the same candidate. Otherwise the commitish
    strings are compared.
    """

    pinned_version: PinnedVersion
    semantic_version: SemanticVersion | None = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "semantic_version",
            SemanticVersion.parse(self.pinned_version.commitish),
        )

    @classmethod
    def from_string(cls, commitish: str) -> ConcreteVersion:
        return cls(PinnedVersion(commitish))

    @classmethod
    def from_semantic(cls, version: SemanticVersion) -> ConcreteVersion:
        return cls(PinnedVersion(str(version)))

    @property
    def is_semantic(self) -> bool:
        return self.semantic_version is not None

    def _compare(self, other: ConcreteVersion) -> int:
        """Return -1 if self is preferred, 1 if other is, 0 if equal."""
        left, right = self.semantic_version, other.semantic_version
        if left is not None and right is not None:
            if left == right:
                return 0
            return -1 if left > right else 1
        if left is not None:
            return -1
        if right is not None:
            return 1
        a, b = self.pinned_version.commitish, other.pinned_version.commitish
        if a == b:
            return 0
        return -1 if a > b else 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConcreteVersion):
            return NotImplemented
        return self._compare(other) == 0

    def __lt__(self, other: ConcreteVersion) -> bool:
        if not isinstance(other, ConcreteVersion):
            return NotImplemented
        return self._compare(other) < 0

    def __hash__(self) -> int:
        if self.semantic_version is not None:
            return hash(self.semantic_version)
        return hash(self.pinned_version)

    def __str__(self) -> str:
        return self.pinned_version.commitish
