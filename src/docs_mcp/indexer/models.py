"""Data models for the documentation index."""

import time
from dataclasses import dataclass, field

import numpy as np

INDEX_VERSION = "1.0.0"

CHUNK_TYPES = ("heading", "paragraph", "code", "list")

SEARCH_MODES = ("semantic", "exact", "fuzzy")

# Supported documentation file extensions
DOC_EXTENSIONS = (
    ".md",
    ".markdown",
    ".txt",
    ".rst",
    ".adoc",
    ".asciidoc",
)

# Files at or above this size are never indexed
MAX_FILE_SIZE = 5 * 1024 * 1024


@dataclass
class ChunkMetadata:
    """Size information for a chunk."""

    word_count: int = 0
    token_count: int = 0


@dataclass
class ParsedChunk:
    """A chunk as produced by a format parser, before it is placed in the index."""

    headings: list[str]
    first_sentence: str
    chunk_type: str
    content: str
    start_line: int
    end_line: int


@dataclass
class DocChunk:
    """Represents an indexed chunk of a documentation file."""

    id: str  # "{file}:{start_line}"
    file: str  # Relative to the project root, POSIX separators
    start_line: int
    end_line: int
    content: str
    context: str = ""
    hierarchy: list[str] = field(default_factory=list)
    chunk_type: str = "paragraph"
    metadata: ChunkMetadata | None = None


@dataclass
class IndexMetadata:
    """Index-level bookkeeping."""

    version: str = INDEX_VERSION
    indexed_at: float = 0.0  # Unix seconds
    file_count: int = 0
    chunk_count: int = 0


@dataclass
class DocIndex:
    """
    The aggregate root of the documentation index.

    Chunks and embeddings live in two independent mappings so removing a
    file is a key deletion in each.
    """

    chunks: dict[str, list[DocChunk]] = field(default_factory=dict)
    embeddings: dict[str, np.ndarray] = field(default_factory=dict)
    metadata: IndexMetadata = field(default_factory=IndexMetadata)

    def recount(self) -> None:
        """Recompute file and chunk counts from the chunk map."""
        self.metadata.file_count = len(self.chunks)
        self.metadata.chunk_count = sum(len(chunks) for chunks in self.chunks.values())

    def remove_file(self, file: str) -> None:
        """Drop a file's chunks and every embedding keyed under it."""
        self.chunks.pop(file, None)
        prefix = f"{file}:"
        for key in [k for k in self.embeddings if k.startswith(prefix)]:
            del self.embeddings[key]

    def iter_chunks(self):
        """Yield every chunk in file order, then document order."""
        for chunks in self.chunks.values():
            yield from chunks

    def copy(self) -> "DocIndex":
        """Shallow copy: new containers, shared (immutable in practice) chunks."""
        return DocIndex(
            chunks={file: list(chunks) for file, chunks in self.chunks.items()},
            embeddings=dict(self.embeddings),
            metadata=IndexMetadata(
                version=self.metadata.version,
                indexed_at=self.metadata.indexed_at,
                file_count=self.metadata.file_count,
                chunk_count=self.metadata.chunk_count,
            ),
        )


def create_empty_index() -> DocIndex:
    """Create an empty index stamped with the current time."""
    return DocIndex(metadata=IndexMetadata(indexed_at=time.time()))


@dataclass
class ChunkingConfig:
    """Chunk size band used during an index build."""

    min_tokens: int = 200
    max_tokens: int = 500
    split_at_headings: bool = True


@dataclass
class SearchFilters:
    """Optional query-scoped filters."""

    file_pattern: str | None = None
    category: list[str] | None = None
    min_score: float | None = None

    @classmethod
    def from_dict(cls, data: dict | None) -> "SearchFilters | None":
        """Build filters from a tool payload, accepting camelCase keys too."""
        if not data:
            return None
        category = data.get("category")
        if isinstance(category, str):
            category = [category]
        min_score = data.get("min_score", data.get("minScore"))
        return cls(
            file_pattern=data.get("file_pattern", data.get("filePattern")),
            category=category,
            min_score=float(min_score) if min_score is not None else None,
        )


@dataclass
class SearchResult:
    """A chunk with its score and the reason it matched."""

    chunk: DocChunk
    score: float
    match_reason: str

    def to_dict(self) -> dict:
        return {
            "file": self.chunk.file,
            "line": self.chunk.start_line,
            "score": round(self.score, 4),
            "context": self.chunk.context,
            "heading_path": list(self.chunk.hierarchy),
            "chunk_type": self.chunk.chunk_type,
            "match_reason": self.match_reason,
        }


@dataclass
class ScanProgress:
    """Progress of a full scan."""

    files_processed: int = 0
    total_files: int = 0
    current_file: str = ""
