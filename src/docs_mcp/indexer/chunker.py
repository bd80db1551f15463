"""Chunk assembly: normalize parsed chunks into a target token band."""

import math
import re
from dataclasses import replace

from docs_mcp.indexer.models import ChunkingConfig, ParsedChunk

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def estimate_token_count(text: str) -> int:
    """Estimate token count (roughly 4 characters per token)."""
    return math.ceil(len(text) / 4)


def count_words(text: str) -> int:
    """Count whitespace-delimited words."""
    return len(text.split())


def _fold(accumulator: ParsedChunk, chunk: ParsedChunk) -> ParsedChunk:
    """Append a chunk to the accumulator, keeping the accumulator's identity."""
    return replace(
        accumulator,
        content=f"{accumulator.content}\n\n{chunk.content}",
        end_line=chunk.end_line,
    )


def merge_small_chunks(chunks: list[ParsedChunk], min_tokens: int) -> list[ParsedChunk]:
    """
    Merge consecutive chunks below min_tokens.

    Small chunks are folded into an accumulator, which is emitted as soon
    as it reaches min_tokens. A chunk that is already large enough flushes
    the pending accumulator and is emitted on its own. The merged chunk
    keeps the headings, type, start line and first sentence of the first
    chunk it absorbed.
    """
    merged: list[ParsedChunk] = []
    accumulator: ParsedChunk | None = None

    for chunk in chunks:
        if estimate_token_count(chunk.content) >= min_tokens:
            if accumulator is not None:
                merged.append(accumulator)
                accumulator = None
            merged.append(chunk)
            continue

        accumulator = chunk if accumulator is None else _fold(accumulator, chunk)

        if estimate_token_count(accumulator.content) >= min_tokens:
            merged.append(accumulator)
            accumulator = None

    if accumulator is not None:
        merged.append(accumulator)

    return merged


def _paragraphs_with_offsets(content: str) -> list[tuple[str, int]]:
    """Split on blank lines, returning each paragraph with its line offset."""
    paragraphs: list[tuple[str, int]] = []
    position = 0
    for match in PARAGRAPH_BREAK.finditer(content):
        paragraphs.append((content[position : match.start()], content.count("\n", 0, position)))
        position = match.end()
    paragraphs.append((content[position:], content.count("\n", 0, position)))
    return [(text, offset) for text, offset in paragraphs if text.strip()]


def split_large_chunks(chunks: list[ParsedChunk], max_tokens: int) -> list[ParsedChunk]:
    """
    Split chunks above max_tokens at paragraph boundaries.

    Paragraphs are packed greedily; a piece is cut when the next paragraph
    would push it over max_tokens. A single paragraph larger than
    max_tokens is emitted on its own.
    """
    result: list[ParsedChunk] = []

    for chunk in chunks:
        if estimate_token_count(chunk.content) <= max_tokens:
            result.append(chunk)
            continue

        current: list[tuple[str, int]] = []

        for paragraph, offset in _paragraphs_with_offsets(chunk.content):
            candidate = "\n\n".join([text for text, _ in current] + [paragraph])
            if current and estimate_token_count(candidate) > max_tokens:
                result.append(_piece(chunk, current))
                current = []
            current.append((paragraph, offset))

        if current:
            result.append(_piece(chunk, current))

    return result


def _piece(chunk: ParsedChunk, paragraphs: list[tuple[str, int]]) -> ParsedChunk:
    """Build one split piece with its own line span inside the parent chunk."""
    first_offset = paragraphs[0][1]
    last_text, last_offset = paragraphs[-1]
    return replace(
        chunk,
        content="\n\n".join(text for text, _ in paragraphs),
        start_line=chunk.start_line + first_offset,
        end_line=chunk.start_line + last_offset + last_text.count("\n"),
    )


def assemble_chunks(chunks: list[ParsedChunk], config: ChunkingConfig) -> list[ParsedChunk]:
    """Apply the merge and split passes when heading-based splitting is on."""
    if not config.split_at_headings:
        return chunks
    chunks = merge_small_chunks(chunks, config.min_tokens)
    return split_large_chunks(chunks, config.max_tokens)
