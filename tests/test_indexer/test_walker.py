"""Tests for documentation file discovery and ignore rules."""

from pathlib import Path

import pytest

from docs_mcp.ignore import IgnoreMatcher
from docs_mcp.indexer import walker
from docs_mcp.indexer.walker import find_documentation_files, is_documentation_file


class TestIsDocumentationFile:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("README.md", True),
            ("guide.MARKDOWN", True),
            ("notes.txt", True),
            ("index.rst", True),
            ("manual.adoc", True),
            ("manual.asciidoc", True),
            ("main.py", False),
            ("Makefile", False),
            ("index.npz", False),
        ],
    )
    def test_extensions(self, name: str, expected: bool):
        assert is_documentation_file(name) is expected


class TestFindDocumentationFiles:
    def test_finds_supported_files(self, docs_root: Path):
        files = find_documentation_files(docs_root)

        assert files == [
            "README.md",
            "docs/api/users.rst",
            "docs/frontend/auth.md",
            "docs/guide.adoc",
            "notes.txt",
        ]

    def test_skips_builtin_ignores(self, docs_root: Path):
        files = find_documentation_files(docs_root)
        assert not any(f.startswith("node_modules/") for f in files)

    def test_respects_gitignore(self, docs_root: Path, write_doc):
        write_doc(docs_root, ".gitignore", "docs/api/\n*.txt\n")

        files = find_documentation_files(docs_root)

        assert "docs/api/users.rst" not in files
        assert "notes.txt" not in files
        assert "README.md" in files

    def test_skips_oversized_files(self, docs_root: Path, monkeypatch):
        monkeypatch.setattr(walker, "MAX_FILE_SIZE", 60)

        files = find_documentation_files(docs_root)

        assert "notes.txt" in files  # under 60 bytes
        assert "README.md" not in files

    def test_missing_root(self, tmp_path: Path):
        assert find_documentation_files(tmp_path / "missing") == []

    def test_uses_given_matcher(self, docs_root: Path):
        matcher = IgnoreMatcher(docs_root, patterns=("docs/",))

        files = find_documentation_files(docs_root, matcher)

        assert files == ["README.md", "node_modules/pkg/README.md", "notes.txt"]


class TestIgnoreMatcher:
    def test_directory_patterns(self, tmp_path: Path):
        matcher = IgnoreMatcher(tmp_path)

        assert matcher.is_ignored("node_modules", is_dir=True)
        assert matcher.is_ignored("node_modules/pkg/README.md")
        assert matcher.is_ignored("packages/web/dist", is_dir=True)
        assert not matcher.is_ignored("docs", is_dir=True)
        assert not matcher.is_ignored("docs/build-guide.md")

    def test_minified_files(self, tmp_path: Path):
        matcher = IgnoreMatcher(tmp_path)
        assert matcher.is_ignored("static/app.min.md")

    def test_gitignore_negation(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("*.txt\n!keep.txt\n")
        matcher = IgnoreMatcher(tmp_path)

        assert matcher.is_ignored("notes.txt")
        assert not matcher.is_ignored("keep.txt")

    def test_root_never_ignored(self, tmp_path: Path):
        assert not IgnoreMatcher(tmp_path).is_ignored("")
