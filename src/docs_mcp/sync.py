"""Startup reconciliation of a persisted index with the filesystem.

A loaded index may be stale: files were added, edited or deleted while
the server was not running. Reconciliation runs in a worker thread against
a copy of the index and is bounded by a timeout. When the timeout wins, the
caller keeps the loaded index as it is.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path

from docs_mcp.ignore import IgnoreMatcher
from docs_mcp.indexer import Indexer
from docs_mcp.indexer.models import DocIndex
from docs_mcp.indexer.walker import find_documentation_files

logger = logging.getLogger(__name__)

DEFAULT_VALIDATION_TIMEOUT = 30.0  # seconds


def find_changed_files(
    index: DocIndex, root: Path, matcher: IgnoreMatcher | None = None
) -> list[str]:
    """
    List files whose index entries are out of date.

    That is: indexed files that no longer exist, documentation files that
    are not indexed, and files modified after the index was written.
    """
    root = Path(root)
    changed: list[str] = []

    for file in index.chunks:
        if not (root / file).is_file():
            changed.append(file)

    indexed_at = index.metadata.indexed_at
    for file in find_documentation_files(root, matcher):
        if file not in index.chunks:
            changed.append(file)
            continue
        try:
            mtime = (root / file).stat().st_mtime
        except OSError:
            continue
        if mtime > indexed_at:
            changed.append(file)

    return changed


def validate_and_sync(
    indexer: Indexer,
    index: DocIndex,
    timeout: float = DEFAULT_VALIDATION_TIMEOUT,
) -> DocIndex | None:
    """
    Reconcile an index with the filesystem within a time limit.

    Args:
        indexer: Indexer used for the incremental update
        index: Loaded index; never mutated
        timeout: Maximum time to wait, in seconds

    Returns:
        The reconciled copy, or None when validation failed or timed out.
    """
    cancel = threading.Event()

    def reconcile() -> DocIndex:
        working = index.copy()
        changed = find_changed_files(working, indexer.root, indexer.matcher)
        if changed:
            logger.info("Reconciling %d changed files", len(changed))
            indexer.update_for_files(working, changed, cancel_event=cancel)
        else:
            logger.debug("Index is up to date")
        return working

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="docs-validate")
    future = executor.submit(reconcile)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        cancel.set()
        logger.warning("Index validation timed out after %.1fs, using loaded index", timeout)
        return None
    except Exception:
        logger.exception("Index validation failed, using loaded index")
        return None
    finally:
        executor.shutdown(wait=False)
