from __future__ import annotations

from pydantic import BaseModel, field_validator

_MAX_ID_LENGTH = 200
_MAX_DOC_NAME_LENGTH = 1024
_MAX_QUERY_LENGTH = 500


def _require_text(value: str, field: str, max_length: int) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{field} must not be empty")
    if len(value) > max_length:
        raise ValueError(f"{field} must be at most {max_length} characters")
    return value


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class GetDocumentationInput(BaseModel):
    project_id: str
    doc_name: str

    @field_validator("project_id")
    @classmethod
    def validate_project_id(cls, v: str) -> str:
        return _require_text(v, "project_id", _MAX_ID_LENGTH)

    @field_validator("doc_name")
    @classmethod
    def validate_doc_name(cls, v: str) -> str:
        return _require_text(v, "doc_name", _MAX_DOC_NAME_LENGTH)


class ListDocumentsInput(BaseModel):
    project_id: str

    @field_validator("project_id")
    @classmethod
    def validate_project_id(cls, v: str) -> str:
        return _require_text(v, "project_id", _MAX_ID_LENGTH)


class SearchDocumentsInput(BaseModel):
    query: str

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        return _require_text(v, "query", _MAX_QUERY_LENGTH)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class GetDocumentationOutput(BaseModel):
    project_id: str
    doc_name: str
    html: str


class ProjectSummary(BaseModel):
    id: str
    path: str


class ListProjectsOutput(BaseModel):
    projects: list[ProjectSummary]


class ListDocumentsOutput(BaseModel):
    project_id: str
    documents: list[str]


class DocumentMatch(BaseModel):
    project_id: str
    doc_name: str


class SearchDocumentsOutput(BaseModel):
    query: str
    matches: list[DocumentMatch]
    truncated: bool = False
