"""Project registry: loading projects.yml and holding the live project list."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
import yaml
from pydantic import ValidationError

from devhelper.errors import ConfigError
from devhelper.models.registry import Project, RegistryFile

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

log = structlog.get_logger()


def load_registry(path: Path) -> list[Project]:
    """Load and validate the project list from *path*.

    Raises ConfigError when the file is absent, unreadable, not valid YAML,
    or does not match the ``projects: [{id, path}, ...]`` schema.
    """
    if not path.is_file():
        raise ConfigError(
            f"Configuration file not found at {path}. "
            "Please create it with your project mappings.",
            path=path,
        )

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read configuration file {path}: {exc}", path=path) from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Configuration file {path} is not valid YAML: {exc}", path=path) from exc

    try:
        registry_file = RegistryFile.model_validate(raw if raw is not None else {})
    except ValidationError as exc:
        details = ", ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration file {path}: {details}", path=path) from exc

    log.info("registry_loaded", projects=len(registry_file.projects), path=str(path))
    return list(registry_file.projects)


class ProjectRegistry:
    """The current, ordered set of projects.

    The list is only ever replaced wholesale. Lookups always read the latest
    list, which the invalidation watcher may swap between requests.
    """

    def __init__(self, projects: Iterable[Project] = ()) -> None:
        self._projects: tuple[Project, ...] = ()
        self._by_id: dict[str, Project] = {}
        self.replace(projects)

    @classmethod
    def from_file(cls, path: Path) -> ProjectRegistry:
        return cls(load_registry(path))

    @property
    def projects(self) -> tuple[Project, ...]:
        return self._projects

    def get(self, project_id: str) -> Project | None:
        return self._by_id.get(project_id)

    def replace(self, projects: Iterable[Project]) -> tuple[Project, ...]:
        """Swap in a new project list. Returns the previous one."""
        new_projects = tuple(projects)
        new_index = {project.id: project for project in new_projects}
        previous = self._projects
        self._projects, self._by_id = new_projects, new_index
        return previous

    def __len__(self) -> int:
        return len(self._projects)

    def __iter__(self) -> Iterator[Project]:
        return iter(self._projects)
