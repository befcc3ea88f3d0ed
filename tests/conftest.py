"""Shared test fixtures for the devhelper test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import yaml

from devhelper.cache import DocumentCache
from devhelper.models.registry import Project
from devhelper.registry import ProjectRegistry
from devhelper.renderer import DocumentRenderer

if TYPE_CHECKING:
    from pathlib import Path


def _write_registry(path: Path, projects: list[dict[str, str]]) -> None:
    """Write a projects.yml in the on-disk registry format."""
    path.write_text(yaml.safe_dump({"projects": projects}), encoding="utf-8")


@pytest.fixture()
def docs_root(tmp_path: Path) -> Path:
    """A small documentation tree.

    docs/
      README.md            "# Hello"
      notes.txt            (not a document)
      guides/setup.md
      guides/advanced/tuning.md
    """
    root = tmp_path / "docs"
    (root / "guides" / "advanced").mkdir(parents=True)
    (root / "README.md").write_text("# Hello\n", encoding="utf-8")
    (root / "notes.txt").write_text("plain text", encoding="utf-8")
    (root / "guides" / "setup.md").write_text(
        "# Setup\n\nRun `make install`.\n\n| a | b |\n|---|---|\n| 1 | 2 |\n",
        encoding="utf-8",
    )
    (root / "guides" / "advanced" / "tuning.md").write_text("# Tuning\n", encoding="utf-8")
    return root


@pytest.fixture()
def api_root(tmp_path: Path) -> Path:
    """A second project with a single document."""
    root = tmp_path / "api"
    root.mkdir()
    (root / "setup-api.md").write_text("# API setup\n", encoding="utf-8")
    return root


@pytest.fixture()
def projects(docs_root: Path, api_root: Path) -> list[Project]:
    return [
        Project(id="docs", path=str(docs_root)),
        Project(id="api", path=str(api_root)),
    ]


@pytest.fixture()
def registry_file(tmp_path: Path, projects: list[Project]) -> Path:
    """projects.yml listing the fixture projects."""
    path = tmp_path / "projects.yml"
    _write_registry(path, [{"id": p.id, "path": p.path} for p in projects])
    return path


@pytest.fixture()
def registry(projects: list[Project]) -> ProjectRegistry:
    return ProjectRegistry(projects)


@pytest.fixture()
def cache() -> DocumentCache:
    return DocumentCache()


@pytest.fixture()
def renderer(registry: ProjectRegistry, cache: DocumentCache) -> DocumentRenderer:
    return DocumentRenderer(registry, cache)
