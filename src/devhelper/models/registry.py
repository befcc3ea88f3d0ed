from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# Ids never contain the cache-key delimiter ":" nor a URL path separator.
_PROJECT_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class Project(BaseModel):
    """Single entry under ``projects:`` in the registry file."""

    model_config = ConfigDict(frozen=True)

    id: str
    path: str

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v:
            raise ValueError("project id must not be empty")
        if not _PROJECT_ID_RE.match(v):
            raise ValueError(f"Invalid project ID: {v!r}")
        return v

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("project path must not be empty")
        return v

    @property
    def root(self) -> Path:
        """Filesystem root with ``~`` expanded. May still be relative."""
        return Path(self.path).expanduser()


class RegistryFile(BaseModel):
    """Top-level shape of projects.yml."""

    projects: list[Project]

    @model_validator(mode="after")
    def check_unique_ids(self) -> RegistryFile:
        seen: set[str] = set()
        for project in self.projects:
            if project.id in seen:
                raise ValueError(f"Duplicate project ID: {project.id!r}")
            seen.add(project.id)
        return self
