"""Shared fixtures for resolvekit tests."""

from __future__ import annotations

import pathlib

import pytest

from resolvekit.core.dependency import DependencyIndex

SAMPLE_INDEX = {
    "dependencies": {
        "github.com/test/App": {
            "versions": {
                "2.0.0": {"requires": {"github.com/test/Core": "~> 1.2"}},
                "1.0.0": {"requires": {"github.com/test/Core": "~> 1.0"}},
            },
        },
        "github.com/test/Core": {
            "versions": {
                "2.0.0": {},
                "1.3.0": {},
                "1.2.0": {},
                "1.0.0": {},
            },
            "references": {"main": "1.3.0"},
        },
        "github.com/test/Mantle": {
            "versions": {"1.3.0": {}, "0.9.0": {}},
        },
    },
}


@pytest.fixture
def sample_index() -> DependencyIndex:
    """``DependencyIndex`` built from ``SAMPLE_INDEX``."""
    return DependencyIndex.from_dict(SAMPLE_INDEX)


@pytest.fixture
def project_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Temporary project directory with a manifest and an index file."""
    project = tmp_path / "project"
    project.mkdir()
    (project / "manifest.yaml").write_text(
        "dependencies:\n"
        "  github.com/test/App: \">= 1.0\"\n"
        "  github.com/test/Mantle: \"\"\n",
        encoding="utf-8",
    )
    (project / "index.yaml").write_text(
        "dependencies:\n"
        "  github.com/test/App:\n"
        "    versions:\n"
        "      \"2.0.0\":\n"
        "        requires:\n"
        "          github.com/test/Core: \"~> 1.2\"\n"
        "      \"1.0.0\":\n"
        "        requires:\n"
        "          github.com/test/Core: \"~> 1.0\"\n"
        "  github.com/test/Core:\n"
        "    versions:\n"
        "      \"2.0.0\": {}\n"
        "      \"1.3.0\": {}\n"
        "      \"1.2.0\": {}\n"
        "  github.com/test/Mantle:\n"
        "    versions:\n"
        "      \"1.3.0\": {}\n"
        "      \"0.9.0\": {}\n",
        encoding="utf-8",
    )
    return project
