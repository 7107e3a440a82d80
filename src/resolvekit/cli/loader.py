"""YAML input loading for the CLI.

Manifest format::

    dependencies:
      github.com/ReactiveCocoa/ReactiveCocoa: "~> 2.3"
      github.com/Mantle/Mantle: ">= 1.0"
      github.com/owner/Tool: '"develop"'

The index format is documented in ``resolvekit.core.dependency.index``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from resolvekit.core.dependency.index import DependencyIndex, parse_requirements
from resolvekit.core.dependency.retriever import DependencyEntry
from resolvekit.exceptions import ManifestError


def load_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML file into a mapping.

    Raises:
        ManifestError: If the file cannot be read, is not valid YAML, or
            its top level is not a mapping.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ManifestError(f"Cannot load {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ManifestError(f"{path} must contain a mapping at the top level")
    return data


def load_manifest(path: Path) -> list[DependencyEntry]:
    """Root requirements declared by a manifest file."""
    data = load_yaml(path)
    if "dependencies" not in data:
        raise ManifestError(f"{path} has no 'dependencies' section")
    return parse_requirements(data["dependencies"] or {}, str(path))


def load_index(path: Path) -> DependencyIndex:
    """Dependency index described by an index file."""
    return DependencyIndex.from_dict(load_yaml(path))
