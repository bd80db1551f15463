"""Main indexer that turns documentation files into indexed chunks."""

import logging
import threading
import time
from collections.abc import Callable, Iterable
from pathlib import Path

import numpy as np

from docs_mcp.embeddings import Embedder
from docs_mcp.ignore import IgnoreMatcher
from docs_mcp.indexer.chunker import assemble_chunks, count_words, estimate_token_count
from docs_mcp.indexer.context import generate_context
from docs_mcp.indexer.models import (
    ChunkingConfig,
    ChunkMetadata,
    DocChunk,
    DocIndex,
    ScanProgress,
    create_empty_index,
)
from docs_mcp.indexer.parser import parse_document
from docs_mcp.indexer.walker import find_documentation_files

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ScanProgress], None]


class Indexer:
    """
    Builds and incrementally updates a DocIndex from the project root.

    The filesystem is always the source of truth. The index is derived and
    can be regenerated at any time.

    Thread Safety:
        Mutations of an index (scan_and_index, update_for_files) are protected
        by a lock so the watcher and the startup validator never interleave.
    """

    def __init__(
        self,
        root: Path,
        config: ChunkingConfig | None = None,
        embedder: Embedder | None = None,
        matcher: IgnoreMatcher | None = None,
    ):
        """
        Initialize the indexer.

        Args:
            root: Project root directory
            config: Chunk size band; defaults to ChunkingConfig()
            embedder: Embedding provider; None indexes without vectors
            matcher: Ignore rules; defaults to an IgnoreMatcher for root
        """
        self.root = Path(root)
        self.config = config or ChunkingConfig()
        self.embedder = embedder
        self.matcher = matcher or IgnoreMatcher(self.root)
        self._write_lock = threading.Lock()

    def relative_path(self, file: str | Path) -> str:
        """
        Normalize a path to the index key form (relative, POSIX).

        Raises:
            ValueError: If an absolute path lies outside the root
        """
        path = Path(file)
        if path.is_absolute():
            path = path.relative_to(self.root)
        return path.as_posix()

    def process_file(self, file: str) -> list[DocChunk]:
        """
        Parse, assemble and describe one file.

        Args:
            file: Path relative to the root

        Raises:
            OSError: If the file cannot be read
            UnicodeDecodeError: If the file is not valid UTF-8
        """
        content = (self.root / file).read_text(encoding="utf-8")
        parsed = assemble_chunks(parse_document(content, file), self.config)

        chunks: list[DocChunk] = []
        for p in parsed:
            chunk = DocChunk(
                id=f"{file}:{p.start_line}",
                file=file,
                start_line=p.start_line,
                end_line=p.end_line,
                content=p.content,
                hierarchy=list(p.headings),
                chunk_type=p.chunk_type,
                metadata=ChunkMetadata(
                    word_count=count_words(p.content),
                    token_count=estimate_token_count(p.content),
                ),
            )
            chunk.context = generate_context(chunk)
            chunks.append(chunk)
        return chunks

    def _index_file(self, index: DocIndex, file: str) -> None:
        """Replace a file's chunks and embeddings in the index."""
        index.remove_file(file)

        path = self.root / file
        if not path.is_file():
            logger.debug("Removed %s from index", file)
            return

        # Resolved path must stay inside the root (symlinks)
        resolved = path.resolve()
        if not resolved.is_relative_to(self.root.resolve()):
            logger.warning("Skipping file outside project root: %s", file)
            return

        chunks = self.process_file(file)
        if not chunks:
            return

        index.chunks[file] = chunks
        self._embed_chunks(index, chunks)
        logger.debug("Indexed %s (%d chunks)", file, len(chunks))

    def _embed_chunks(self, index: DocIndex, chunks: list[DocChunk]) -> None:
        if self.embedder is None:
            return
        for chunk in chunks:
            try:
                vector = self.embedder.embed(chunk.context)
            except Exception as e:
                logger.warning("Embedding failed for %s: %s", chunk.id, e)
                continue
            if vector is not None:
                index.embeddings[chunk.id] = np.asarray(vector, dtype=np.float32)

    def scan_and_index(
        self,
        on_progress: ProgressCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> DocIndex:
        """
        Perform a full scan of the root into a new index.

        Args:
            on_progress: Called before and after each file with the scan progress
            cancel_event: When set, the scan stops at the next file boundary

        Returns:
            The freshly built index.
        """
        with self._write_lock:
            logger.info("Starting full documentation scan of %s", self.root)
            files = find_documentation_files(self.root, self.matcher)
            index = create_empty_index()
            progress = ScanProgress(total_files=len(files))

            for file in files:
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Scan cancelled after %d files", progress.files_processed)
                    break

                progress.current_file = file
                if on_progress:
                    on_progress(progress)

                try:
                    self._index_file(index, file)
                except Exception as e:
                    logger.warning("Skipping %s: %s", file, e)
                    index.remove_file(file)

                progress.files_processed += 1
                if on_progress:
                    on_progress(progress)

            index.recount()
            logger.info(
                "Scan complete: %d files, %d chunks",
                index.metadata.file_count,
                index.metadata.chunk_count,
            )
            return index

    def update_for_files(
        self,
        index: DocIndex,
        files: Iterable[str | Path],
        cancel_event: threading.Event | None = None,
    ) -> None:
        """
        Re-index specific files in place (incremental update).

        Each file's chunks and embeddings are removed; the file is processed
        again if it still exists. Counts and indexed_at are refreshed.

        Args:
            index: Index to update
            files: Absolute paths or paths relative to the root
            cancel_event: When set, stops at the next file boundary
        """
        with self._write_lock:
            for file in files:
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Incremental update cancelled")
                    break

                try:
                    relative = self.relative_path(file)
                except ValueError:
                    logger.warning("Skipping file outside project root: %s", file)
                    continue

                try:
                    self._index_file(index, relative)
                except Exception as e:
                    logger.warning("Skipping %s: %s", relative, e)
                    index.remove_file(relative)

            index.recount()
            index.metadata.indexed_at = time.time()
