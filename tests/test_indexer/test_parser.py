"""Tests for the format parsers."""

import pytest

from docs_mcp.indexer.parser import (
    detect_chunk_type,
    extract_first_sentence,
    is_adornment,
    parse_asciidoc,
    parse_document,
    parse_markdown,
    parse_plain_text,
    parse_rst,
)

MARKDOWN = """Intro text.

# Title

Body.

## Sub

More text.

# Other

End."""


class TestParseMarkdown:
    def test_splits_on_headings(self):
        chunks = parse_markdown(MARKDOWN)

        assert [c.headings for c in chunks] == [
            [],
            ["Title"],
            ["Title", "Sub"],
            ["Other"],
        ]

    def test_preamble_is_a_chunk(self):
        chunks = parse_markdown(MARKDOWN)

        assert chunks[0].content == "Intro text."
        assert chunks[0].chunk_type == "paragraph"

    def test_line_spans(self):
        chunks = parse_markdown(MARKDOWN)

        assert [(c.start_line, c.end_line) for c in chunks] == [
            (0, 1),
            (2, 5),
            (6, 9),
            (10, 12),
        ]

    def test_heading_chunks_keep_heading_line(self):
        chunks = parse_markdown(MARKDOWN)

        assert chunks[1].content == "# Title\n\nBody."
        assert chunks[1].chunk_type == "heading"
        assert chunks[1].first_sentence == "Body."

    def test_heading_path_is_snapshot(self):
        """Later pushes and pops must not alter headings of earlier chunks."""
        chunks = parse_markdown("# A\n\ntext\n\n## B\n\ntext\n\n# C\n\ntext")

        assert chunks[0].headings == ["A"]
        assert chunks[1].headings == ["A", "B"]
        assert chunks[2].headings == ["C"]

    def test_same_level_replaces_sibling(self):
        chunks = parse_markdown("## One\n\na\n\n## Two\n\nb")
        assert [c.headings for c in chunks] == [["One"], ["Two"]]

    def test_requires_space_after_hashes(self):
        chunks = parse_markdown("#hashtag is not a heading")

        assert len(chunks) == 1
        assert chunks[0].headings == []

    @pytest.mark.parametrize("content", ["", "   \n\n  \n"])
    def test_empty_input(self, content: str):
        assert parse_markdown(content) == []


class TestParseAsciiDoc:
    def test_levels_from_equals_count(self):
        content = (
            "= Guide\n\nIntro.\n\n== Setup\n\nSteps.\n\n"
            "=== Detail\n\nMore.\n\n== Usage\n\nUse it."
        )
        chunks = parse_asciidoc(content)

        assert [c.headings for c in chunks] == [
            ["Guide"],
            ["Guide", "Setup"],
            ["Guide", "Setup", "Detail"],
            ["Guide", "Usage"],
        ]
        assert all(c.chunk_type == "heading" for c in chunks)

    def test_empty_input(self):
        assert parse_asciidoc("") == []


class TestParseRst:
    def test_title_and_section(self):
        content = "Title\n=====\n\nIntro.\n\nSection\n-------\n\nBody."
        chunks = parse_rst(content)

        assert len(chunks) == 2
        assert chunks[0].headings == ["Title"]
        assert chunks[1].headings == ["Title", "Section"]
        assert chunks[1].content == "Section\n-------\n\nBody."
        assert chunks[1].start_line == 5

    def test_overline_is_absorbed(self):
        content = "=====\nTitle\n=====\n\nIntro.\n\nSection\n-------\n\nBody."
        chunks = parse_rst(content)

        assert len(chunks) == 2
        assert chunks[0].content.startswith("=====\nTitle\n=====")
        assert chunks[0].start_line == 0
        assert chunks[0].end_line == 5
        assert chunks[0].chunk_type == "heading"

    def test_short_underline_is_not_a_heading(self):
        chunks = parse_rst("Title\n==\n\nText.")

        assert len(chunks) == 1
        assert chunks[0].headings == []

    def test_levels_follow_first_appearance_of_underline_char(self):
        """The first underline character seen is the outermost level.

        Here '-' appears before '=', so '=' headings nest below '-' ones,
        even though many projects use '=' for titles.
        """
        content = "Alpha\n-----\n\nText.\n\nBeta\n====\n\nMore.\n\nGamma\n-----\n\nEnd."
        chunks = parse_rst(content)

        assert [c.headings for c in chunks] == [
            ["Alpha"],
            ["Alpha", "Beta"],
            ["Gamma"],
        ]

    def test_empty_input(self):
        assert parse_rst("") == []


class TestParsePlainText:
    def test_paragraphs_with_exact_lines(self):
        content = "First paragraph line one.\nline two.\n\n\nSecond paragraph."
        chunks = parse_plain_text(content)

        assert [(c.start_line, c.end_line) for c in chunks] == [(0, 1), (4, 4)]
        assert chunks[0].content == "First paragraph line one.\nline two."
        assert all(c.headings == [] for c in chunks)

    def test_empty_input(self):
        assert parse_plain_text("\n\n") == []


class TestParseDocument:
    @pytest.mark.parametrize(
        ("path", "expected_headings"),
        [
            ("docs/readme.md", [["Title"]]),
            ("docs/README.MD", [["Title"]]),
            ("notes.markdown", [["Title"]]),
            ("notes.txt", [[]]),
            ("notes.unknown", [[]]),
        ],
    )
    def test_dispatch_by_extension(self, path: str, expected_headings: list):
        chunks = parse_document("# Title\nsome text", path)
        assert [c.headings for c in chunks] == expected_headings

    def test_rst_and_adoc(self):
        assert parse_document("Title\n=====\n\nText.", "a.rst")[0].headings == ["Title"]
        assert parse_document("= Title\n\nText.", "a.adoc")[0].headings == ["Title"]
        assert parse_document("= Title\n\nText.", "a.asciidoc")[0].headings == ["Title"]


class TestExtractFirstSentence:
    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("# Heading\n\nFirst sentence. Second sentence.", "First sentence."),
            ("Is this a question? Yes.", "Is this a question?"),
            ("Wow! Much docs.", "Wow!"),
            ("- item one. more", "item one."),
            ("```\ncode. here\n```\nAfter code. Yes", "After code."),
            ("== Setup\n\nInstall first. Then run.", "Install first."),
            ("No terminator here\nsecond line.", "No terminator here"),
            ("Ends with a period.", "Ends with a period."),
        ],
    )
    def test_sentences(self, content: str, expected: str):
        assert extract_first_sentence(content) == expected

    def test_inline_code_removed(self):
        result = extract_first_sentence("Run `make build` first. Then test.")
        assert "`" not in result
        assert "make build" not in result

    def test_fallback_truncates_first_line(self):
        assert extract_first_sentence("x" * 150) == "x" * 100

    def test_empty(self):
        assert extract_first_sentence("") == ""


class TestDetectChunkType:
    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("# Title\ntext", "heading"),
            ("== Section\ntext", "heading"),
            ("Title\n=====\n\ntext", "heading"),
            ("=====\nTitle\n=====", "heading"),
            ("Some text\n```\ncode\n```", "code"),
            ("Some text\n~~~\ncode\n~~~", "code"),
            ("Example:\n\n----\ncode\n----", "code"),
            (".. code-block:: python\n\n   print(1)", "code"),
            ("Example::\n\n    indented", "code"),
            ("- item\n- item", "list"),
            ("* item", "list"),
            ("+ item", "list"),
            ("1. first\n2. second", "list"),
            ("Plain paragraph.", "paragraph"),
        ],
    )
    def test_types(self, content: str, expected: str):
        assert detect_chunk_type(content) == expected


class TestIsAdornment:
    @pytest.mark.parametrize(
        ("line", "char", "expected"),
        [
            ("=====", None, True),
            ("-----  ", None, True),
            ("~~~", "~", True),
            ("=-=-", None, False),
            ("abc", None, False),
            ("", None, False),
            ("-----", "=", False),
        ],
    )
    def test_adornment(self, line: str, char: str | None, expected: bool):
        assert is_adornment(line, char) == expected
