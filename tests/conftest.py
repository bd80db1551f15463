"""Shared fixtures for docs-mcp tests."""

import re
import time
import zlib
from pathlib import Path

import numpy as np
import pytest

WORD = re.compile(r"[a-z0-9]+")


class FakeEmbedder:
    """Deterministic bag-of-words embedder.

    Each word is hashed into one of ``dim`` buckets, so texts sharing words
    get a positive cosine similarity and disjoint texts get zero.
    """

    def __init__(self, dim: int = 64, fail_initialize: bool = False):
        self.dim = dim
        self.fail_initialize = fail_initialize
        self.initialized = False
        self.calls: list[str] = []

    def initialize(self) -> None:
        if self.fail_initialize:
            raise RuntimeError("model unavailable")
        self.initialized = True

    def embed(self, text: str) -> list[float] | None:
        self.calls.append(text)
        words = WORD.findall(text.lower())
        if not words:
            return None
        vector = np.zeros(self.dim, dtype=np.float32)
        for word in words:
            vector[zlib.crc32(word.encode()) % self.dim] += 1.0
        return (vector / np.linalg.norm(vector)).tolist()


def wait_for_condition(condition_fn, timeout: float = 3.0, interval: float = 0.05) -> bool:
    """Wait for a condition to become true, polling at interval.

    Returns:
        True if condition was met, False if timeout was reached.
    """
    deadline = time.time() + timeout
    while time.time() < deadline:
        if condition_fn():
            return True
        time.sleep(interval)
    return False


def write_file(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def docs_root(tmp_path: Path) -> Path:
    """A small project with documentation in several formats."""
    root = tmp_path / "project"
    write_file(
        root,
        "README.md",
        "# Project\n\nThis project indexes documentation.\n\n"
        "## Installation\n\nRun the installer and restart the server.\n",
    )
    write_file(
        root,
        "docs/frontend/auth.md",
        "# Authentication\n\nThe frontend uses JWT tokens for authentication.\n\n"
        "## Tokens\n\nTokens expire after one hour.\n",
    )
    write_file(
        root,
        "docs/api/users.rst",
        "Users API\n=========\n\nThe users endpoint lists accounts.\n\n"
        "Pagination\n----------\n\nResults are paginated by cursor.\n",
    )
    write_file(
        root,
        "docs/guide.adoc",
        "= Guide\n\nGetting started with the guide.\n\n== Setup\n\nInstall dependencies first.\n",
    )
    write_file(root, "notes.txt", "Plain notes about deployment.\n\nSecond paragraph here.\n")
    write_file(root, "node_modules/pkg/README.md", "# Ignored\n\nVendored docs.\n")
    write_file(root, "src/main.py", "print('not documentation')\n")
    return root


@pytest.fixture
def embedder_factory():
    """Build FakeEmbedder instances with custom options."""
    return FakeEmbedder


@pytest.fixture
def write_doc():
    """Write a file below a root, creating parent directories."""
    return write_file


@pytest.fixture
def wait_for():
    """Polling helper for background threads."""
    return wait_for_condition
