"""Heuristic context strings for documentation chunks.

A context reads like ``"frontend > Authentication > Tokens: Tokens expire
after one hour."`` and is used both for keyword scoring and for display.
"""

from docs_mcp.indexer.models import DocChunk
from docs_mcp.indexer.parser import extract_first_sentence

# Directory names that introduce a documentation category
DOCS_DIR_NAMES = {"docs", "documentation", "doc", "guides", "wiki"}

DEFAULT_CATEGORY = "general"

SENTENCE_DISPLAY_CHARS = 80


def extract_category(file_path: str) -> str:
    """
    Extract a category from a file path.

    Examples:
        docs/frontend/auth.md -> "frontend"
        documentation/api/users.md -> "api"
        src/components/README.md -> "components"
        README.md -> "general"
    """
    parts = file_path.replace("\\", "/").split("/")

    for i, part in enumerate(parts[:-1]):
        if part.lower() in DOCS_DIR_NAMES:
            next_part = parts[i + 1]
            if next_part and "." not in next_part:
                return next_part

    if len(parts) >= 2:
        parent = parts[-2]
        if parent and "." not in parent:
            return parent

    return DEFAULT_CATEGORY


def generate_context(chunk: DocChunk) -> str:
    """Generate the display/search context for a chunk."""
    category = extract_category(chunk.file)
    hierarchy = " > ".join(chunk.hierarchy)
    sentence = extract_first_sentence(chunk.content)[:SENTENCE_DISPLAY_CHARS]

    if hierarchy and sentence:
        return f"{category} > {hierarchy}: {sentence}"
    if hierarchy:
        return f"{category} > {hierarchy}"
    if sentence:
        return f"{category}: {sentence}"
    return category


def generate_searchable_text(chunk: DocChunk) -> str:
    """Combine context, headings and content into lower-cased keyword text."""
    return " ".join([chunk.context, *chunk.hierarchy, chunk.content]).lower()
