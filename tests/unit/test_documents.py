"""Unit tests for document naming, containment, and tree walks."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from devhelper.documents import (
    addressable_name,
    document_name_for,
    iter_documents,
    resolve_document_path,
    sanitize_doc_name,
    search_documents,
)

if TYPE_CHECKING:
    from pathlib import Path

    from devhelper.models.registry import Project


class TestSanitizeDocName:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("README", "README"),
            ("README.md", "README"),
            ("guides/setup", "guides/setup"),
            ("guides\\setup", "guides/setup"),
            ("./guides//setup", "guides/setup"),
            ("guides/../README", "README"),
            ("../../etc/passwd", "etc/passwd"),
            ("/abs/path", "abs/path"),
            ("..\\secrets", "secrets"),
        ],
    )
    def test_normalises(self, raw: str, expected: str) -> None:
        assert sanitize_doc_name(raw) == expected

    @pytest.mark.parametrize("raw", ["", ".", "..", "../..", "/", ".md"])
    def test_nothing_addressable_returns_none(self, raw: str) -> None:
        assert sanitize_doc_name(raw) is None


class TestResolveDocumentPath:
    def test_existing_document(self, docs_root: Path) -> None:
        path = resolve_document_path(docs_root, "guides/setup")
        assert path == (docs_root / "guides" / "setup.md").resolve()

    def test_missing_document(self, docs_root: Path) -> None:
        assert resolve_document_path(docs_root, "nope") is None

    def test_directory_is_not_a_document(self, docs_root: Path) -> None:
        (docs_root / "folder.md").mkdir()
        assert resolve_document_path(docs_root, "folder") is None

    def test_symlink_escaping_root_rejected(self, tmp_path: Path, docs_root: Path) -> None:
        secret = tmp_path / "secret.md"
        secret.write_text("# Secret", encoding="utf-8")
        (docs_root / "leak.md").symlink_to(secret)

        assert resolve_document_path(docs_root, "leak") is None

    def test_dotdot_escaping_root_rejected(self, tmp_path: Path, docs_root: Path) -> None:
        (tmp_path / "outside.md").write_text("# Outside", encoding="utf-8")
        assert resolve_document_path(docs_root, "../outside") is None


class TestAddressableName:
    def test_plain_name_unchanged(self) -> None:
        assert addressable_name("guides/setup") == "guides/setup"

    def test_name_ending_in_suffix_round_trips(self) -> None:
        assert addressable_name("notes.md") == "notes.md.md"
        assert sanitize_doc_name(addressable_name("notes.md")) == "notes.md"


class TestDocumentNameFor:
    def test_maps_back_to_name(self, docs_root: Path) -> None:
        path = docs_root / "guides" / "advanced" / "tuning.md"
        assert document_name_for(docs_root, str(path)) == "guides/advanced/tuning"

    def test_non_markdown_ignored(self, docs_root: Path) -> None:
        assert document_name_for(docs_root, docs_root / "notes.txt") is None

    def test_outside_root_ignored(self, tmp_path: Path, docs_root: Path) -> None:
        assert document_name_for(docs_root, tmp_path / "other.md") is None


class TestIterDocuments:
    def test_depth_first_sorted(self, docs_root: Path) -> None:
        assert list(iter_documents(docs_root)) == [
            "README",
            "guides/advanced/tuning",
            "guides/setup",
        ]

    def test_is_lazy(self, docs_root: Path) -> None:
        it = iter_documents(docs_root)
        assert next(it) == "README"

    def test_symlinked_directory_not_followed(self, tmp_path: Path, docs_root: Path) -> None:
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        (elsewhere / "hidden.md").write_text("x", encoding="utf-8")
        os.symlink(elsewhere, docs_root / "linked")

        assert "linked/hidden" not in list(iter_documents(docs_root))

    def test_missing_root_yields_nothing(self, tmp_path: Path) -> None:
        assert list(iter_documents(tmp_path / "missing")) == []

    def test_double_suffix_listed_under_reachable_name(self, docs_root: Path) -> None:
        (docs_root / "notes.md.md").write_text("# Double", encoding="utf-8")

        listed = [name for name in iter_documents(docs_root) if name.startswith("notes")]

        assert listed == ["notes.md.md"]
        resolved = resolve_document_path(docs_root, sanitize_doc_name(listed[0]) or "")
        assert resolved == (docs_root / "notes.md.md").resolve()


class TestSearchDocuments:
    def test_case_insensitive_across_projects(self, projects: list[Project]) -> None:
        results = [(p.id, name) for p, name in search_documents(projects, "SETUP")]
        assert results == [("docs", "guides/setup"), ("api", "setup-api")]

    def test_limit(self, projects: list[Project]) -> None:
        results = list(search_documents(projects, "setup", limit=1))
        assert len(results) == 1

    def test_no_match(self, projects: list[Project]) -> None:
        assert list(search_documents(projects, "zzz")) == []
