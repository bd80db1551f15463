"""Format parsers that split documentation files into heading-scoped chunks.

Every parser is a pure function from text to an ordered list of
ParsedChunk. Markdown and AsciiDoc mark headings with a prefix run of
``#`` or ``=``; reStructuredText marks them with an underline (and an
optional overline); plain text has no headings at all.
"""

import re
import string
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import PurePosixPath

from docs_mcp.indexer.models import ParsedChunk

MARKDOWN_HEADING = re.compile(r"^(#{1,6})\s+(.+)$")
ASCIIDOC_HEADING = re.compile(r"^(={1,6})\s+(.+)$")

# Used by first-sentence extraction and chunk-type detection
HEADING_LINES = re.compile(r"^(?:#{1,6}|={1,6})[ \t]+.+$", re.MULTILINE)
FENCED_CODE = re.compile(r"```[\s\S]*?```|~~~[\s\S]*?~~~")
INLINE_CODE = re.compile(r"`[^`]+`")
LIST_MARKERS = re.compile(r"^[-*+]\s+", re.MULTILINE)
SENTENCE = re.compile(r"(.+?[.!?])\s")

STARTS_WITH_HEADING = re.compile(r"^(?:#{1,6}|={1,6})[ \t]+\S")
STARTS_WITH_LIST = re.compile(r"^(?:[-*+]|\d+[.)])\s+")
DELIMITED_CODE = re.compile(
    r"^----[ \t]*$[\s\S]*?^----[ \t]*$"  # AsciiDoc listing block
    r"|^\.\.\s+(?:code-block|code|sourcecode)::"  # RST directive
    r"|::[ \t]*\n[ \t]*\n[ \t]+\S",  # RST literal block
    re.MULTILINE,
)

FIRST_LINE_FALLBACK_CHARS = 100


@dataclass
class _Heading:
    level: int
    text: str
    line: int


def is_adornment(line: str, char: str | None = None) -> bool:
    """Check if a line is an RST adornment: one punctuation char repeated."""
    stripped = line.strip()
    if not stripped:
        return False
    first = stripped[0]
    if first not in string.punctuation:
        return False
    if char is not None and first != char:
        return False
    return stripped == first * len(stripped)


def _push_heading(stack: list[_Heading], heading: _Heading) -> None:
    """Pop headings of the same or a deeper level, then push."""
    while stack and stack[-1].level >= heading.level:
        stack.pop()
    stack.append(heading)


def _create_chunk(
    lines: list[str],
    start_line: int,
    end_line: int,
    stack: list[_Heading],
) -> ParsedChunk | None:
    """Build a chunk from raw lines, snapshotting the heading stack."""
    content = "\n".join(lines).strip()
    if not content:
        return None

    return ParsedChunk(
        headings=[h.text for h in stack],
        first_sentence=extract_first_sentence(content),
        chunk_type=detect_chunk_type(content),
        content=content,
        start_line=start_line,
        end_line=end_line,
    )


def _parse_prefixed_headings(content: str, pattern: re.Pattern[str]) -> list[ParsedChunk]:
    """Shared parser for dialects whose headings are a prefix run of one char."""
    lines = content.splitlines()
    chunks: list[ParsedChunk] = []
    stack: list[_Heading] = []

    current_start = 0
    current_lines: list[str] = []

    for i, line in enumerate(lines):
        match = pattern.match(line)
        if not match:
            current_lines.append(line)
            continue

        if current_lines:
            chunk = _create_chunk(current_lines, current_start, i - 1, stack)
            if chunk:
                chunks.append(chunk)

        _push_heading(stack, _Heading(len(match.group(1)), match.group(2).strip(), i))

        current_start = i
        current_lines = [line]

    if current_lines:
        chunk = _create_chunk(current_lines, current_start, len(lines) - 1, stack)
        if chunk:
            chunks.append(chunk)

    return chunks


def parse_markdown(content: str) -> list[ParsedChunk]:
    """Parse Markdown: one chunk per ``#`` heading, plus any preamble."""
    return _parse_prefixed_headings(content, MARKDOWN_HEADING)


def parse_asciidoc(content: str) -> list[ParsedChunk]:
    """Parse AsciiDoc: one chunk per ``=`` heading, plus any preamble."""
    return _parse_prefixed_headings(content, ASCIIDOC_HEADING)


def parse_rst(content: str) -> list[ParsedChunk]:
    """
    Parse reStructuredText into chunks.

    A heading is a non-blank line followed by an underline of one repeated
    punctuation character at least as long as the heading text. An
    overline of the same character directly above is absorbed into the
    heading's chunk.

    Heading levels follow the order in which underline characters first
    appear in the document: the first character seen is level 0, the next
    new one level 1, and so on. Two documents that use the same characters
    in a different order will therefore nest differently.
    """
    lines = content.splitlines()
    chunks: list[ParsedChunk] = []
    stack: list[_Heading] = []
    char_levels: dict[str, int] = {}

    current_start = 0
    current_lines: list[str] = []
    # Lines before this index belong to an already-consumed heading
    consumed_until = 0
    i = 0

    while i < len(lines):
        line = lines[i]
        next_line = lines[i + 1] if i + 1 < len(lines) else ""
        text = line.strip()

        is_heading = (
            bool(text)
            and not is_adornment(line)
            and is_adornment(next_line)
            and len(next_line.strip()) >= len(text)
        )
        if not is_heading:
            current_lines.append(line)
            i += 1
            continue

        underline_char = next_line.strip()[0]
        has_overline = (
            i - 1 >= consumed_until
            and bool(current_lines)
            and is_adornment(lines[i - 1], underline_char)
        )
        overline = current_lines.pop() if has_overline else None

        if current_lines:
            end = i - 2 if has_overline else i - 1
            chunk = _create_chunk(current_lines, current_start, end, stack)
            if chunk:
                chunks.append(chunk)

        level = char_levels.setdefault(underline_char, len(char_levels))
        _push_heading(stack, _Heading(level, text, i))

        if overline is not None:
            current_start = i - 1
            current_lines = [overline, line, next_line]
        else:
            current_start = i
            current_lines = [line, next_line]

        i += 2
        consumed_until = i

    if current_lines:
        chunk = _create_chunk(current_lines, current_start, len(lines) - 1, stack)
        if chunk:
            chunks.append(chunk)

    return chunks


def parse_plain_text(content: str) -> list[ParsedChunk]:
    """Parse plain text: one chunk per blank-line-delimited paragraph."""
    lines = content.splitlines()
    chunks: list[ParsedChunk] = []
    paragraph: list[str] = []
    start = 0

    for i, line in enumerate(lines):
        if line.strip():
            if not paragraph:
                start = i
            paragraph.append(line)
        elif paragraph:
            chunk = _create_chunk(paragraph, start, i - 1, [])
            if chunk:
                chunks.append(chunk)
            paragraph = []

    if paragraph:
        chunk = _create_chunk(paragraph, start, len(lines) - 1, [])
        if chunk:
            chunks.append(chunk)

    return chunks


PARSERS: dict[str, Callable[[str], list[ParsedChunk]]] = {
    ".md": parse_markdown,
    ".markdown": parse_markdown,
    ".rst": parse_rst,
    ".adoc": parse_asciidoc,
    ".asciidoc": parse_asciidoc,
    ".txt": parse_plain_text,
}


def parse_document(content: str, file_path: str) -> list[ParsedChunk]:
    """Parse a file with the strategy for its extension (plain text otherwise)."""
    ext = PurePosixPath(file_path).suffix.lower()
    parser = PARSERS.get(ext, parse_plain_text)
    return parser(content)


def extract_first_sentence(content: str) -> str:
    """
    Extract the first meaningful sentence from chunk content.

    Headings, fenced code, inline code and list markers are removed first.
    The sentence ends at the first ``.``, ``!`` or ``?`` followed by
    whitespace on the first line; otherwise the first line, truncated.
    """
    text = HEADING_LINES.sub("", content).strip()
    text = FENCED_CODE.sub("", text).strip()
    text = INLINE_CODE.sub("", text)
    text = LIST_MARKERS.sub("", text)

    match = SENTENCE.match(text)
    if match:
        return match.group(1)

    first_line = text.split("\n")[0].strip()
    return first_line[:FIRST_LINE_FALLBACK_CHARS]


def _starts_with_rst_title(content: str) -> bool:
    lines = content.split("\n", 3)
    if len(lines) >= 2 and not is_adornment(lines[0]) and is_adornment(lines[1]):
        return len(lines[1].strip()) >= len(lines[0].strip())
    if len(lines) >= 3 and is_adornment(lines[0]):
        return is_adornment(lines[2], lines[0].strip()[0])
    return False


def detect_chunk_type(content: str) -> str:
    """Classify a chunk as heading, code, list or paragraph."""
    if STARTS_WITH_HEADING.match(content) or _starts_with_rst_title(content):
        return "heading"
    if FENCED_CODE.search(content) or DELIMITED_CODE.search(content):
        return "code"
    if STARTS_WITH_LIST.match(content):
        return "list"
    return "paragraph"
