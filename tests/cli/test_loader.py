"""Tests for YAML manifest and index loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from resolvekit.cli.loader import load_index, load_manifest, load_yaml
from resolvekit.core.dependency import AtLeast, Dependency, GitReference, SemanticVersion
from resolvekit.exceptions import ManifestError


class TestLoadManifest:
    def test_pairs_in_file_order(self, tmp_path: Path) -> None:
        path = tmp_path / "manifest.yaml"
        path.write_text(
            "dependencies:\n"
            "  github.com/test/Tool: '\"develop\"'\n"
            "  github.com/test/Core: '>= 1.2'\n"
        )
        assert load_manifest(path) == [
            (Dependency.from_origin("github.com/test/Tool"), GitReference("develop")),
            (Dependency.from_origin("github.com/test/Core"), AtLeast(SemanticVersion(1, 2))),
        ]

    def test_empty_dependencies(self, tmp_path: Path) -> None:
        path = tmp_path / "manifest.yaml"
        path.write_text("dependencies:\n")
        assert load_manifest(path) == []

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "manifest.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ManifestError):
            load_yaml(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError):
            load_yaml(tmp_path / "absent.yaml")


class TestLoadIndex:
    def test_loads_project_index(self, project_dir: Path) -> None:
        index = load_index(project_dir / "index.yaml")
        assert [d.name for d in index.dependencies] == ["App", "Core", "Mantle"]
