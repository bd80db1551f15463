"""File walker for discovering documentation files under the project root."""

import logging
import os
from pathlib import Path

from docs_mcp.ignore import IgnoreMatcher
from docs_mcp.indexer.models import DOC_EXTENSIONS, MAX_FILE_SIZE

logger = logging.getLogger(__name__)


def is_documentation_file(path: str) -> bool:
    """Check the file extension against DOC_EXTENSIONS (case-insensitive)."""
    return os.path.splitext(path)[1].lower() in DOC_EXTENSIONS


def find_documentation_files(root: Path, matcher: IgnoreMatcher | None = None) -> list[str]:
    """
    Walk the project root depth-first and return documentation files.

    Structure example::

        <root>/
        ├── README.md            -> "README.md"
        ├── docs/
        │   ├── api/users.md     -> "docs/api/users.md"
        │   └── guide.rst        -> "docs/guide.rst"
        └── node_modules/...     (ignored)

    Args:
        root: Project root directory
        matcher: Ignore rules; defaults to an IgnoreMatcher for root

    Returns:
        Sorted paths relative to root, with POSIX separators.
    """
    root = Path(root)
    if not root.is_dir():
        return []
    if matcher is None:
        matcher = IgnoreMatcher(root)

    files: list[str] = []

    def scan(directory: Path) -> None:
        try:
            entries = sorted(os.scandir(directory), key=lambda e: e.name)
        except OSError as e:
            logger.warning("Cannot list %s: %s", directory, e)
            return

        for entry in entries:
            relative = Path(entry.path).relative_to(root).as_posix()
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file(follow_symlinks=False)
            except OSError:
                continue

            if matcher.is_ignored(relative, is_dir=is_dir):
                continue

            if is_dir:
                scan(Path(entry.path))
            elif is_file and is_documentation_file(entry.name):
                try:
                    size = entry.stat(follow_symlinks=False).st_size
                except OSError as e:
                    logger.warning("Cannot stat %s: %s", relative, e)
                    continue
                if size < MAX_FILE_SIZE:
                    files.append(relative)
                else:
                    logger.debug("Skipping oversized file %s (%d bytes)", relative, size)

    scan(root)
    return sorted(files)
