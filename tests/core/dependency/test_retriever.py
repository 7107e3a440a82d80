"""Tests for DependencyRetriever caching and collaborator error handling."""

from __future__ import annotations

from collections import Counter

import pytest

from resolvekit.core.dependency import (
    AtLeast,
    ConcreteVersion,
    Dependency,
    DependencyRetriever,
    PinnedDependency,
    PinnedVersion,
    SemanticVersion,
)
from resolvekit.exceptions import CollaboratorError, ExhaustedSearchError, SpecifierParseError

CORE = Dependency.from_origin("github.com/test/Core")
APP = Dependency.from_origin("github.com/test/App")


class CountingSource:
    """Collaborators backed by dicts that count every call."""

    def __init__(self) -> None:
        self.calls: Counter = Counter()
        self.versions = {CORE: ["1.0.0", "2.0.0", "main"], APP: ["1.0.0"]}
        self.requires = {(APP, "1.0.0"): [(CORE, AtLeast(SemanticVersion(1)))]}
        self.references = {(CORE, "main"): "2.0.0"}

    def versions_for_dependency(self, dependency: Dependency) -> list[PinnedVersion]:
        self.calls["versions"] += 1
        return [PinnedVersion(v) for v in self.versions[dependency]]

    def dependencies_for_dependency(self, dependency: Dependency, version: PinnedVersion) -> list:
        self.calls["dependencies"] += 1
        return self.requires.get((dependency, version.commitish), [])

    def resolved_git_reference(self, dependency: Dependency, name: str) -> PinnedVersion:
        self.calls["references"] += 1
        return PinnedVersion(self.references[(dependency, name)])

    def retriever(self) -> DependencyRetriever:
        return DependencyRetriever(
            self.versions_for_dependency,
            self.dependencies_for_dependency,
            self.resolved_git_reference,
        )


@pytest.fixture
def source() -> CountingSource:
    return CountingSource()


class TestCaching:
    """Each lookup reaches its collaborator at most once per key."""

    def test_versions_fetched_once(self, source: CountingSource) -> None:
        retriever = source.retriever()
        first = retriever.find_all_versions(CORE)
        second = retriever.find_all_versions(CORE)
        assert [str(v) for v in first] == ["2.0.0", "1.0.0", "main"]
        assert [str(v) for v in second] == [str(v) for v in first]
        assert source.calls["versions"] == 1

    def test_versions_returned_as_copies(self, source: CountingSource) -> None:
        retriever = source.retriever()
        first = retriever.find_all_versions(CORE)
        first.remove(ConcreteVersion.from_string("2.0.0"))
        assert len(retriever.find_all_versions(CORE)) == 3

    def test_dependencies_cached_per_version(self, source: CountingSource) -> None:
        retriever = source.retriever()
        v1 = ConcreteVersion.from_string("1.0.0")
        assert retriever.find_dependencies(APP, v1) == [(CORE, AtLeast(SemanticVersion(1)))]
        retriever.find_dependencies(APP, v1)
        retriever.find_dependencies(CORE, v1)
        assert source.calls["dependencies"] == 2

    def test_references_cached(self, source: CountingSource) -> None:
        retriever = source.retriever()
        assert retriever.resolve_reference(CORE, "main") == ConcreteVersion.from_string("2.0.0")
        retriever.resolve_reference(CORE, "main")
        assert source.calls["references"] == 1

    def test_plain_strings_accepted(self) -> None:
        retriever = DependencyRetriever(
            lambda dep: ["v1.0", "2.0.0"],
            lambda dep, version: [],
            lambda dep, name: "2.0.0",
        )
        assert [str(v) for v in retriever.find_all_versions(CORE)] == ["2.0.0", "v1.0"]
        assert retriever.resolve_reference(CORE, "x").pinned_version == PinnedVersion("2.0.0")

    def test_separate_retrievers_do_not_share_caches(self, source: CountingSource) -> None:
        source.retriever().find_all_versions(CORE)
        source.retriever().find_all_versions(CORE)
        assert source.calls["versions"] == 2


class TestCollaboratorFailures:
    """Exceptions from collaborators abort with a chained CollaboratorError."""

    def test_error_is_wrapped_and_chained(self) -> None:
        def broken(dependency: Dependency) -> list[PinnedVersion]:
            raise ConnectionError("network unreachable")

        retriever = DependencyRetriever(broken, lambda d, v: [], lambda d, n: PinnedVersion(n))
        with pytest.raises(CollaboratorError) as exc_info:
            retriever.find_all_versions(CORE)
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert exc_info.value.dependency == CORE
        assert "network unreachable" in str(exc_info.value)

    def test_failed_lookup_is_not_cached(self) -> None:
        attempts = []

        def flaky(dependency: Dependency) -> list[PinnedVersion]:
            attempts.append(dependency)
            if len(attempts) == 1:
                raise TimeoutError("slow remote")
            return [PinnedVersion("1.0.0")]

        retriever = DependencyRetriever(flaky, lambda d, v: [], lambda d, n: PinnedVersion(n))
        with pytest.raises(CollaboratorError):
            retriever.find_all_versions(CORE)
        assert len(retriever.find_all_versions(CORE)) == 1

    def test_resolvekit_errors_pass_through(self) -> None:
        def bad_manifest(dependency: Dependency, version: PinnedVersion) -> list:
            raise SpecifierParseError("Invalid version specifier: '1.0'")

        retriever = DependencyRetriever(lambda d: [], bad_manifest, lambda d, n: PinnedVersion(n))
        with pytest.raises(SpecifierParseError):
            retriever.find_dependencies(APP, ConcreteVersion.from_string("1.0.0"))

    def test_unknown_reference(self, source: CountingSource) -> None:
        with pytest.raises(CollaboratorError) as exc_info:
            source.retriever().resolve_reference(CORE, "develop")
        assert isinstance(exc_info.value.__cause__, KeyError)


def _pin(dependency: Dependency, version: str) -> PinnedDependency:
    return PinnedDependency(dependency, ConcreteVersion.from_string(version))


class TestConflictMemory:
    """Conflicts found in one branch are remembered for the rest of the search."""

    def test_pair_is_stored_both_ways(self, source: CountingSource) -> None:
        retriever = source.retriever()
        error = ExhaustedSearchError([APP])
        retriever.add_conflict(_pin(APP, "1.0.0"), _pin(CORE, "2.0.0"), error)

        app_conflict = retriever.cached_conflict(_pin(APP, "1.0.0"))
        core_conflict = retriever.cached_conflict(_pin(CORE, "2.0.0"))
        assert app_conflict is not None and app_conflict.conflicting == [_pin(CORE, "2.0.0")]
        assert core_conflict is not None and core_conflict.conflicting == [_pin(APP, "1.0.0")]
        assert app_conflict.error is error
        assert retriever.cached_conflict(_pin(CORE, "1.0.0")) is None

    def test_root_conflict_supersedes_pairs(self, source: CountingSource) -> None:
        retriever = source.retriever()
        error = ExhaustedSearchError([APP])
        retriever.add_conflict(_pin(APP, "1.0.0"), _pin(CORE, "2.0.0"), error)
        retriever.add_conflict(_pin(APP, "1.0.0"), None, error)
        retriever.add_conflict(_pin(APP, "1.0.0"), _pin(CORE, "1.0.0"), error)

        conflict = retriever.cached_conflict(_pin(APP, "1.0.0"))
        assert conflict is not None and conflict.conflicting is None

    def test_repeated_conflict_counts_once(self, source: CountingSource) -> None:
        retriever = source.retriever()
        error = ExhaustedSearchError([APP])
        retriever.add_conflict(_pin(APP, "1.0.0"), _pin(CORE, "2.0.0"), error)
        retriever.add_conflict(_pin(APP, "1.0.0"), _pin(CORE, "2.0.0"), error)
        assert retriever.problem_count(APP) == 1
        assert retriever.problem_count(CORE) == 1

    def test_most_problematic(self, source: CountingSource) -> None:
        retriever = source.retriever()
        assert retriever.most_problematic([APP, CORE]) is None

        retriever.add_problematic(CORE)
        assert retriever.most_problematic([APP, CORE]) == CORE
        assert retriever.most_problematic([APP]) is None

        retriever.add_problematic(APP)
        assert retriever.most_problematic([APP, CORE]) == APP
        assert retriever.most_problematic([CORE, APP]) == CORE
