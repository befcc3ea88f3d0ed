"""Tool handler for list_projects."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from devhelper.models.tools import ListProjectsOutput, ProjectSummary

if TYPE_CHECKING:
    from devhelper.state import AppState


async def handle(state: AppState) -> dict:
    """Handle a list_projects tool call."""
    log = structlog.get_logger().bind(tool="list_projects")
    log.info("handler_called")

    projects = [
        ProjectSummary(id=project.id, path=project.path) for project in state.registry.projects
    ]
    log.info("list_projects_complete", project_count=len(projects))

    output = ListProjectsOutput(projects=projects)
    return output.model_dump(mode="json")
