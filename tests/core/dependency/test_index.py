"""Tests for DependencyIndex: lookups, cycle detection, and loading from
index documents."""

from __future__ import annotations

import pytest

from resolvekit.core.dependency import (
    AtLeast,
    CompatibleWith,
    Dependency,
    DependencyIndex,
    GitReference,
    PinnedVersion,
    SemanticVersion,
    parse_requirements,
)
from resolvekit.exceptions import ManifestError

APP = Dependency.from_origin("github.com/test/App")
CORE = Dependency.from_origin("github.com/test/Core")


class TestLookups:
    def test_versions_and_requirements(self, sample_index: DependencyIndex) -> None:
        versions = sample_index.versions_for_dependency(APP)
        assert sorted(v.commitish for v in versions) == ["1.0.0", "2.0.0"]
        assert sample_index.dependencies_for_dependency(APP, PinnedVersion("2.0.0")) == [
            (CORE, CompatibleWith(SemanticVersion(1, 2)))
        ]

    def test_unknown_dependency_has_no_versions(self, sample_index: DependencyIndex) -> None:
        missing = Dependency.from_origin("github.com/test/Missing")
        assert sample_index.versions_for_dependency(missing) == []

    def test_unknown_revision_raises(self, sample_index: DependencyIndex) -> None:
        with pytest.raises(KeyError):
            sample_index.dependencies_for_dependency(APP, PinnedVersion("9.9.9"))

    def test_references(self, sample_index: DependencyIndex) -> None:
        assert sample_index.resolved_git_reference(CORE, "main") == PinnedVersion("1.3.0")
        assert sample_index.resolved_git_reference(CORE, "1.2.0") == PinnedVersion("1.2.0")
        with pytest.raises(LookupError):
            sample_index.resolved_git_reference(CORE, "develop")

    def test_collaborators_order(self, sample_index: DependencyIndex) -> None:
        versions, dependencies, references = sample_index.collaborators()
        assert versions(CORE)
        assert dependencies(CORE, PinnedVersion("1.0.0")) == []
        assert references(CORE, "main") == PinnedVersion("1.3.0")

    def test_add_version_replaces_requirements(self) -> None:
        index = DependencyIndex()
        index.add_version(APP, "1.0.0", [(CORE, AtLeast(SemanticVersion(1)))])
        index.add_version(APP, "1.0.0")
        assert index.dependencies_for_dependency(APP, PinnedVersion("1.0.0")) == []
        assert index.dependencies == [APP]


class TestDetectCycles:
    def test_acyclic(self, sample_index: DependencyIndex) -> None:
        assert sample_index.detect_cycles() == []

    def test_cycle_reported(self) -> None:
        index = DependencyIndex()
        index.add_version(APP, "1.0.0", [(CORE, AtLeast(SemanticVersion(1)))])
        index.add_version(CORE, "1.0.0", [(APP, AtLeast(SemanticVersion(1)))])
        assert index.detect_cycles() == [[APP, CORE, APP]]


class TestFromDict:
    def test_references_and_git_specifiers(self) -> None:
        index = DependencyIndex.from_dict({
            "dependencies": {
                "github.com/test/App": {
                    "versions": {"1.0.0": {"requires": {"github.com/test/Core": '"main"'}}},
                },
                "github.com/test/Core": {"versions": {"abc123": None}},
            }
        })
        requires = index.dependencies_for_dependency(APP, PinnedVersion("1.0.0"))
        assert requires == [(CORE, GitReference("main"))]
        assert index.versions_for_dependency(CORE) == [PinnedVersion("abc123")]

    def test_missing_dependencies_section(self) -> None:
        with pytest.raises(ManifestError):
            DependencyIndex.from_dict({"packages": {}})

    def test_entry_must_be_mapping(self) -> None:
        with pytest.raises(ManifestError):
            DependencyIndex.from_dict({"dependencies": {"github.com/test/App": ["1.0.0"]}})

    def test_invalid_specifier(self) -> None:
        with pytest.raises(ManifestError) as exc_info:
            DependencyIndex.from_dict({
                "dependencies": {
                    "github.com/test/App": {
                        "versions": {"1.0.0": {"requires": {"github.com/test/Core": "1.0"}}},
                    },
                }
            })
        assert "github.com/test/App" in str(exc_info.value)


class TestParseRequirements:
    def test_null_specifier_means_any(self) -> None:
        pairs = parse_requirements({"github.com/test/Core": None}, "manifest")
        assert [str(spec) for _, spec in pairs] == [""]

    def test_not_a_mapping(self) -> None:
        with pytest.raises(ManifestError):
            parse_requirements(["github.com/test/Core"], "manifest")
