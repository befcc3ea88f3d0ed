from __future__ import annotations

from devhelper.models.registry import Project, RegistryFile
from devhelper.models.tools import (
    DocumentMatch,
    GetDocumentationInput,
    GetDocumentationOutput,
    ListDocumentsInput,
    ListDocumentsOutput,
    ListProjectsOutput,
    ProjectSummary,
    SearchDocumentsInput,
    SearchDocumentsOutput,
)

__all__ = [
    # registry
    "Project",
    "RegistryFile",
    # tools
    "GetDocumentationInput",
    "GetDocumentationOutput",
    "ListDocumentsInput",
    "ListDocumentsOutput",
    "ListProjectsOutput",
    "ProjectSummary",
    "SearchDocumentsInput",
    "SearchDocumentsOutput",
    "DocumentMatch",
]
