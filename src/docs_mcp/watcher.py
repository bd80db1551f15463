"""File watcher that batches documentation changes.

Filesystem events are filtered to documentation files outside ignored
paths, collected in a pending set, and handed to the callback as one batch
once no new event arrived for ``delay`` seconds.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from docs_mcp.ignore import IgnoreMatcher
from docs_mcp.indexer.walker import is_documentation_file

logger = logging.getLogger(__name__)

BATCH_DELAY = 0.5  # seconds


class _DocsEventHandler(FileSystemEventHandler):
    """Forwards relevant file events to the watcher."""

    def __init__(self, watcher: "DocsWatcher"):
        super().__init__()
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            self._watcher.queue_directory_added(event.src_path)
        else:
            self._watcher.queue_change(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.queue_change(event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            self._watcher.queue_directory_removed(event.src_path)
        else:
            self._watcher.queue_change(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            self._watcher.queue_directory_removed(event.src_path)
            self._watcher.queue_directory_added(event.dest_path)
        else:
            self._watcher.queue_change(event.src_path)
            self._watcher.queue_change(event.dest_path)


class DocsWatcher:
    """Watches the project root and reports batches of changed documentation files."""

    def __init__(
        self,
        root: Path,
        on_change: Callable[[list[str]], None],
        matcher: IgnoreMatcher | None = None,
        delay: float = BATCH_DELAY,
        indexed_files: Callable[[], Iterable[str]] | None = None,
    ):
        """
        Args:
            root: Directory to watch recursively
            on_change: Receives a batch of changed paths relative to root
            matcher: Ignore rules; defaults to an IgnoreMatcher for root
            delay: Quiet period before a batch is flushed, in seconds
            indexed_files: Returns the currently indexed paths; lets a removed
                directory be expanded into the files it contained
        """
        self.root = Path(root)
        self._on_change = on_change
        self._matcher = matcher or IgnoreMatcher(self.root)
        self._delay = delay
        self._indexed_files = indexed_files

        self._lock = threading.Lock()
        self._pending: set[str] = set()
        self._timer: threading.Timer | None = None
        self._observer: Observer | None = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Start watching. Calling start on a running watcher does nothing."""
        if self._observer is not None:
            return

        observer = Observer()
        observer.schedule(_DocsEventHandler(self), str(self.root), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.info("Watching %s for documentation changes", self.root)

    def stop(self) -> None:
        """Stop watching and drop any pending batch."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending.clear()

        if self._observer is None:
            return

        self._observer.stop()
        self._observer.join(timeout=5)
        if self._observer.is_alive():
            logger.warning("Watcher thread did not stop cleanly")
        else:
            logger.info("Watcher stopped")
        self._observer = None

    def _relative(self, path: str | bytes) -> str | None:
        if isinstance(path, bytes):
            path = path.decode()
        try:
            return Path(path).relative_to(self.root).as_posix()
        except ValueError:
            return None

    def _relevant_path(self, path: str | bytes) -> str | None:
        relative = self._relative(path)
        if relative is None or not is_documentation_file(relative):
            return None
        if self._matcher.is_ignored(relative):
            return None
        return relative

    def queue_change(self, path: str | bytes) -> None:
        """Add a changed path to the pending batch and restart the quiet timer."""
        relative = self._relevant_path(path)
        if relative is not None:
            self._enqueue([relative])

    def queue_directory_removed(self, path: str | bytes) -> None:
        """Queue every indexed file that lived under a removed or moved-away directory."""
        relative = self._relative(path)
        if not relative or relative == "." or self._indexed_files is None:
            return
        prefix = f"{relative}/"
        self._enqueue([file for file in self._indexed_files() if file.startswith(prefix)])

    def queue_directory_added(self, path: str | bytes) -> None:
        """Queue the documentation files inside a directory that appeared under the root."""
        relative = self._relative(path)
        if relative is None or self._matcher.is_ignored(relative, is_dir=True):
            return
        files = []
        for candidate in (self.root / relative).rglob("*"):
            if not candidate.is_file():
                continue
            file = self._relevant_path(str(candidate))
            if file is not None:
                files.append(file)
        self._enqueue(files)

    def _enqueue(self, files: list[str]) -> None:
        if not files:
            return
        with self._lock:
            self._pending.update(files)
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._delay, self._flush)
            self._timer.daemon = True
            self._timer.start()

    def _flush(self) -> None:
        with self._lock:
            files = sorted(self._pending)
            self._pending.clear()
            self._timer = None

        if not files:
            return

        logger.debug("Flushing %d changed files", len(files))
        try:
            self._on_change(files)
        except Exception:
            logger.exception("Error handling file changes")
