"""Tests for context generation."""

import pytest

from docs_mcp.indexer.context import (
    extract_category,
    generate_context,
    generate_searchable_text,
)
from docs_mcp.indexer.models import DocChunk


def make_chunk(file: str, content: str, hierarchy: list[str] | None = None) -> DocChunk:
    return DocChunk(
        id=f"{file}:0",
        file=file,
        start_line=0,
        end_line=content.count("\n"),
        content=content,
        hierarchy=hierarchy or [],
    )


class TestExtractCategory:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("docs/frontend/auth.md", "frontend"),
            ("documentation/api/users.md", "api"),
            ("project/wiki/ops/runbook.md", "ops"),
            ("Docs/Guides/intro.md", "Guides"),
            ("src/components/README.md", "components"),
            ("docs/auth.md", "docs"),
            ("README.md", "general"),
            ("v1.2/readme.md", "general"),
            ("docs\\api\\users.md", "api"),
        ],
    )
    def test_categories(self, path: str, expected: str):
        assert extract_category(path) == expected


class TestGenerateContext:
    def test_hierarchy_and_sentence(self):
        chunk = make_chunk(
            "docs/frontend/auth.md",
            "# Authentication\n\nUses JWT tokens. Tokens expire.",
            ["Authentication"],
        )
        assert generate_context(chunk) == "frontend > Authentication: Uses JWT tokens."

    def test_nested_hierarchy(self):
        chunk = make_chunk(
            "docs/api/users.md",
            "## Pagination\n\nResults are paginated. Use cursors.",
            ["Users", "Pagination"],
        )
        assert generate_context(chunk) == "api > Users > Pagination: Results are paginated."

    def test_sentence_only(self):
        chunk = make_chunk("README.md", "Just a note. More text.")
        assert generate_context(chunk) == "general: Just a note."

    def test_hierarchy_only(self):
        chunk = make_chunk("docs/api/x.md", "```\ncode\n```", ["Example"])
        assert generate_context(chunk) == "api > Example"

    def test_category_only(self):
        chunk = make_chunk("README.md", "```\ncode\n```")
        assert generate_context(chunk) == "general"

    def test_sentence_truncated(self):
        chunk = make_chunk("README.md", "w" * 200)
        assert generate_context(chunk) == "general: " + "w" * 80

    def test_deterministic(self):
        chunk = make_chunk("docs/a/b.md", "Hello there. Bye.", ["H"])
        assert generate_context(chunk) == generate_context(chunk)


class TestSearchableText:
    def test_combines_and_lowercases(self):
        chunk = make_chunk("docs/a/b.md", "Body With CAPS", ["Heading"])
        chunk.context = "a > Heading: Body With CAPS"

        text = generate_searchable_text(chunk)

        assert text == text.lower()
        assert "heading" in text
        assert "body with caps" in text
