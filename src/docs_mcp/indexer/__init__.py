"""
Indexer package for docs-mcp.

Turns documentation files into heading-scoped chunks, stores them in a
persisted index and searches them. The filesystem is the source of truth;
the index can always be rebuilt from it.
"""

from docs_mcp.indexer.indexer import Indexer
from docs_mcp.indexer.models import (
    ChunkingConfig,
    DocChunk,
    DocIndex,
    SearchFilters,
    SearchResult,
    create_empty_index,
)
from docs_mcp.indexer.search import SearchEngine
from docs_mcp.indexer.storage import IndexStore
from docs_mcp.indexer.walker import find_documentation_files

__all__ = [
    "ChunkingConfig",
    "DocChunk",
    "DocIndex",
    "IndexStore",
    "Indexer",
    "SearchEngine",
    "SearchFilters",
    "SearchResult",
    "create_empty_index",
    "find_documentation_files",
]
