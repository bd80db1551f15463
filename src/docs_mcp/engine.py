"""Documentation engine: owns the index lifecycle and answers searches.

States as seen by callers::

    NOT_INITIALIZED -> INDEXING -> READY
    READY -> INDEXING -> READY        (each batch of file changes)

Searches issued while INDEXING are answered with a progress message
instead of being queued. A published index is never mutated: updates are
applied to a copy that replaces it once complete.
"""

import logging
import math
import threading
from enum import Enum

from docs_mcp.config import Config
from docs_mcp.embeddings import Embedder, EmbeddingsState, SentenceTransformerEmbedder
from docs_mcp.ignore import IgnoreMatcher
from docs_mcp.indexer import IndexStore, Indexer, SearchEngine
from docs_mcp.indexer.models import SEARCH_MODES, DocIndex, ScanProgress, SearchFilters
from docs_mcp.locking import LockError
from docs_mcp.sync import validate_and_sync
from docs_mcp.watcher import DocsWatcher

logger = logging.getLogger(__name__)


class EngineState(Enum):
    NOT_INITIALIZED = "not_initialized"
    INDEXING = "indexing"
    READY = "ready"


class DocsEngine:
    """Loads or builds the index, keeps it in sync and serves search requests."""

    def __init__(
        self,
        config: Config,
        embedder: Embedder | None = None,
        store: IndexStore | None = None,
    ):
        """
        Args:
            config: Application configuration
            embedder: Embedding provider; defaults to a sentence-transformers model
            store: Index persistence; defaults to an IndexStore at config.index_path
        """
        self.config = config
        self.embedder = embedder or SentenceTransformerEmbedder(config.embed_model)
        self.embeddings = EmbeddingsState(retry_interval=config.embed_retry_seconds)
        self.matcher = IgnoreMatcher(config.root)
        self.store = store or IndexStore(config.index_path)
        self.indexer = Indexer(config.root, config.chunking, self.embedder, self.matcher)
        self.search_engine = SearchEngine(self.embedder)

        self.state = EngineState.NOT_INITIALIZED
        self.progress = ScanProgress()
        self.index: DocIndex | None = None

        self._update_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._watcher: DocsWatcher | None = None

    # Lifecycle

    def initialize(self, force_reindex: bool = False) -> None:
        """
        Load or build the index, reconcile it with disk and start watching.

        Args:
            force_reindex: Ignore any persisted index and rebuild from scratch
        """
        self.embeddings.try_initialize(self.embedder)

        index = None if force_reindex else self.store.load()
        if index is None:
            self._full_scan()
        else:
            logger.info(
                "Loaded index: %d files, %d chunks",
                index.metadata.file_count,
                index.metadata.chunk_count,
            )
            self.index = index
            self.state = EngineState.READY

            synced = validate_and_sync(self.indexer, index, self.config.validation_timeout)
            if synced is not None:
                with self._update_lock:
                    self.index = synced
                    self._save(synced)

        if self._stop_event.is_set():
            return

        if self.config.watch:
            self._watcher = DocsWatcher(
                self.config.root,
                self.on_files_changed,
                self.matcher,
                indexed_files=self._indexed_files,
            )
            self._watcher.start()

    def _full_scan(self) -> None:
        self.progress = ScanProgress()
        self.state = EngineState.INDEXING
        try:
            index = self.indexer.scan_and_index(
                on_progress=self._on_progress, cancel_event=self._stop_event
            )
        except Exception:
            self.index = self.index or DocIndex()
            self.state = EngineState.READY
            raise

        with self._update_lock:
            self.index = index
            self.state = EngineState.READY
            self._save(index)

    def _on_progress(self, progress: ScanProgress) -> None:
        self.progress = ScanProgress(
            files_processed=progress.files_processed,
            total_files=progress.total_files,
            current_file=progress.current_file,
        )

    def start_background(self, force_reindex: bool = False) -> threading.Thread:
        """Run initialize() in a daemon thread so the server can start answering at once."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Engine initialization already running")
            return self._thread

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._initialize_safely,
            args=(force_reindex,),
            name="docs-index",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def _initialize_safely(self, force_reindex: bool) -> None:
        try:
            self.initialize(force_reindex=force_reindex)
        except Exception:
            logger.exception("Index initialization failed")
            self.embeddings.available = False
            if self.index is None:
                self.index = DocIndex()
            self.state = EngineState.READY

    def stop(self) -> None:
        """Stop the watcher and ask any running scan to finish early."""
        self._stop_event.set()
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=5)
        self._thread = None

    # Incremental updates

    def on_files_changed(self, files: list[str]) -> None:
        """Re-index a batch of changed files and persist the result."""
        if self.index is None:
            return

        with self._update_lock:
            self.progress = ScanProgress(total_files=len(files))
            self.state = EngineState.INDEXING
            try:
                working = self.index.copy()
                self.indexer.update_for_files(working, files)
                self.index = working
            finally:
                self.progress = ScanProgress(files_processed=len(files), total_files=len(files))
                self.state = EngineState.READY

            logger.info("Re-indexed %d changed files", len(files))
            # Saved under the lock so batches reach disk in order
            self._save(working)

    def _indexed_files(self) -> list[str]:
        index = self.index
        return list(index.chunks) if index is not None else []

    def _save(self, index: DocIndex) -> None:
        try:
            self.store.save(index)
        except (LockError, OSError) as e:
            logger.warning("Failed to persist index to %s: %s", self.store.index_path, e)

    # Queries

    def search(
        self,
        query: str,
        mode: str = "semantic",
        filters: SearchFilters | None = None,
        limit: int | None = None,
    ) -> dict:
        """
        Search the index.

        Returns:
            ``{"success": True, "data": {...}}`` with the results, or
            ``{"success": False, "error": "..."}`` when the request cannot be served.
        """
        if self.state is EngineState.INDEXING:
            progress = self.progress
            percent = (
                round(progress.files_processed / progress.total_files * 100)
                if progress.total_files
                else 0
            )
            return {
                "success": False,
                "error": (
                    f"Indexing in progress: {percent}% "
                    f"({progress.files_processed}/{progress.total_files} files), "
                    "try again in a few seconds"
                ),
            }

        index = self.index
        if index is None:
            return {"success": False, "error": "Index not initialized"}

        if not query:
            return {"success": False, "error": "Query parameter is required"}

        if mode not in SEARCH_MODES:
            return {
                "success": False,
                "error": f"Unknown search mode '{mode}'. Use one of: {', '.join(SEARCH_MODES)}",
            }

        if mode == "semantic" and not self.embeddings.ensure_available(self.embedder):
            minutes = math.ceil(self.embeddings.seconds_until_retry() / 60)
            return {
                "success": False,
                "error": (
                    "Semantic search unavailable - embeddings model failed to load. "
                    f"Retrying in {minutes} minutes. Use mode='exact' or mode='fuzzy' instead."
                ),
            }

        results = self.search_engine.search(
            index,
            query,
            mode=mode,
            filters=filters,
            limit=limit or self.config.default_limit,
        )
        formatted = [result.to_dict() for result in results]

        return {
            "success": True,
            "data": {
                "results": formatted,
                "query": query,
                "mode": mode,
                "total_results": len(formatted),
            },
        }
