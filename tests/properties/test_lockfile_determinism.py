"""Property-based tests for lockfile determinism and round-trip fidelity.

Verifies that lockfile serialization is:
- Deterministic: same resolution -> same JSON, whatever the insertion order
- Round-trip safe: to_json -> from_json preserves every pin
"""
from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from resolvekit.core.dependency import Dependency, PinnedVersion
from resolvekit.core.lockfile import ResolvedLockfile


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

names = st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=3, max_size=20)

versions = st.one_of(
    st.tuples(
        st.integers(0, 99), st.integers(0, 99), st.integers(0, 99)
    ).map(lambda t: "%d.%d.%d" % t),
    st.text(alphabet="0123456789abcdef", min_size=7, max_size=12),
)

resolutions = st.dictionaries(
    names.map(lambda n: Dependency.from_origin(f"github.com/owner/{n}")),
    versions.map(PinnedVersion),
    max_size=10,
)


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestLockfileDeterminism:
    @given(resolved=resolutions)
    @settings(max_examples=100)
    def test_insertion_order_irrelevant(self, resolved: dict) -> None:
        reversed_order = dict(reversed(list(resolved.items())))
        a = ResolvedLockfile.from_resolution(resolved, roots=list(resolved))
        b = ResolvedLockfile.from_resolution(reversed_order, roots=list(reversed_order))
        assert a.to_json() == b.to_json()

    @given(resolved=resolutions)
    @settings(max_examples=100)
    def test_round_trip(self, resolved: dict) -> None:
        lf = ResolvedLockfile.from_resolution(resolved)
        restored = ResolvedLockfile.from_json(lf.to_json())
        assert restored.pins() == resolved
        assert restored.diff(lf) == {"added": [], "removed": [], "changed": []}
