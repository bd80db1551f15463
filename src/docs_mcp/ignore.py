"""Ignore rules shared by the scanner and the file watcher."""

import logging
from pathlib import Path

import pathspec

logger = logging.getLogger(__name__)

# Standard ignore patterns (gitignore syntax)
DOC_IGNORE_PATTERNS = (
    "node_modules/",
    ".venv/",
    "venv/",
    "__pycache__/",
    "vendor/",
    "target/",
    "dist/",
    "build/",
    ".git/",
    ".next/",
    ".nuxt/",
    "coverage/",
    "*.min.*",
)


class IgnoreMatcher:
    """Gitignore-style matcher over the built-in patterns plus the project's .gitignore."""

    def __init__(self, root: Path, patterns: tuple[str, ...] = DOC_IGNORE_PATTERNS):
        self.root = Path(root)
        lines = list(patterns)

        gitignore = self.root / ".gitignore"
        if gitignore.is_file():
            try:
                lines.extend(gitignore.read_text(encoding="utf-8").splitlines())
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Cannot read %s: %s", gitignore, e)

        self._spec = pathspec.GitIgnoreSpec.from_lines(lines)

    def is_ignored(self, relative_path: str, is_dir: bool = False) -> bool:
        """
        Check a path relative to the root.

        Directories must be flagged so that patterns like ``build/`` match them.
        """
        if not relative_path or relative_path.startswith(".."):
            return False
        candidate = relative_path.replace("\\", "/")
        if is_dir and not candidate.endswith("/"):
            candidate += "/"
        return self._spec.match_file(candidate)
