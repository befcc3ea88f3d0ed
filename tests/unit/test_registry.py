"""Unit tests for registry loading and the live project list."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from devhelper.errors import ConfigError
from devhelper.models.registry import Project
from devhelper.registry import ProjectRegistry, load_registry

if TYPE_CHECKING:
    from pathlib import Path


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadRegistry:
    def test_loads_projects_in_file_order(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "projects.yml",
            "projects:\n"
            "  - id: web\n    path: /srv/web\n"
            "  - id: api\n    path: ~/code/api\n",
        )
        projects = load_registry(path)
        assert [p.id for p in projects] == ["web", "api"]
        assert projects[0].path == "/srv/web"

    def test_empty_project_list_is_valid(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "projects.yml", "projects: []\n")
        assert load_registry(path) == []

    def test_missing_file_raises_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "nope.yml"
        with pytest.raises(ConfigError) as exc_info:
            load_registry(path)
        assert "Configuration file not found" in exc_info.value.message
        assert exc_info.value.path == path

    def test_malformed_yaml_raises_config_error(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "projects.yml", "projects: [\n  - id: web\n")
        with pytest.raises(ConfigError, match="not valid YAML"):
            load_registry(path)

    def test_empty_file_raises_config_error(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "projects.yml", "")
        with pytest.raises(ConfigError, match="projects"):
            load_registry(path)

    def test_entry_without_path_raises_config_error(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "projects.yml", "projects:\n  - id: web\n")
        with pytest.raises(ConfigError, match=r"projects\.0\.path"):
            load_registry(path)

    def test_duplicate_ids_raise_config_error(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "projects.yml",
            "projects:\n  - id: web\n    path: /a\n  - id: web\n    path: /b\n",
        )
        with pytest.raises(ConfigError, match="Duplicate project ID"):
            load_registry(path)

    def test_id_containing_delimiter_is_rejected(self, tmp_path: Path) -> None:
        path = _write(tmp_path / "projects.yml", "projects:\n  - id: 'a:b'\n    path: /a\n")
        with pytest.raises(ConfigError, match="Invalid project ID"):
            load_registry(path)

    def test_invalid_utf8_raises_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "projects.yml"
        path.write_bytes(b"projects:\n  - id: \xff\xfe\n")
        with pytest.raises(ConfigError, match="Failed to read"):
            load_registry(path)


class TestProjectModel:
    @pytest.mark.parametrize("project_id", ["web", "my-app", "lib_2", "v1.2", "A"])
    def test_valid_ids(self, project_id: str) -> None:
        assert Project(id=project_id, path="/x").id == project_id

    @pytest.mark.parametrize("project_id", ["", "a:b", "a/b", "-lead", " web", "a b"])
    def test_invalid_ids(self, project_id: str) -> None:
        with pytest.raises(ValidationError):
            Project(id=project_id, path="/x")

    def test_blank_path_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Project(id="web", path="   ")

    def test_root_expands_user(self) -> None:
        project = Project(id="web", path="~/web")
        assert "~" not in str(project.root)


class TestProjectRegistry:
    def test_get_and_iteration(self, projects: list[Project]) -> None:
        registry = ProjectRegistry(projects)
        assert len(registry) == 2
        assert registry.get("docs") is projects[0]
        assert registry.get("missing") is None
        assert list(registry) == projects

    def test_replace_swaps_whole_list(self, projects: list[Project]) -> None:
        registry = ProjectRegistry(projects)
        replacement = [Project(id="new", path="/new")]

        previous = registry.replace(replacement)

        assert previous == tuple(projects)
        assert registry.projects == tuple(replacement)
        assert registry.get("docs") is None
        assert registry.get("new") is replacement[0]

    def test_from_file(self, registry_file: Path) -> None:
        registry = ProjectRegistry.from_file(registry_file)
        assert [p.id for p in registry] == ["docs", "api"]

    def test_from_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            ProjectRegistry.from_file(tmp_path / "missing.yml")
