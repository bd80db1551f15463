"""Embedding provider and availability tracking.

The engine only depends on the small Embedder protocol. The default
implementation wraps a sentence-transformers model that is loaded lazily on
first use; when the model (or the library) cannot be loaded, the provider
reports itself unavailable and keyword search keeps working.
"""

import logging
import time
from dataclasses import dataclass
from typing import Protocol

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "all-MiniLM-L6-v2"
DEFAULT_RETRY_INTERVAL = 5 * 60  # seconds


class Embedder(Protocol):
    """Capability that turns text into a vector."""

    def initialize(self) -> None:
        """Prepare the model. Raises on failure."""
        ...

    def embed(self, text: str) -> list[float] | None:
        """Return a vector for text, or None if embeddings are unavailable."""
        ...


class SentenceTransformerEmbedder:
    """Embedder backed by a local sentence-transformers model."""

    def __init__(self, model_name: str = DEFAULT_MODEL):
        self.model_name = model_name
        self._model = None

    def initialize(self) -> None:
        """Load the model (downloads it on first use)."""
        if self._model is not None:
            return
        from sentence_transformers import SentenceTransformer

        logger.info("Loading embedding model %s", self.model_name)
        self._model = SentenceTransformer(self.model_name)

    def embed(self, text: str) -> list[float] | None:
        if self._model is None:
            return None
        try:
            vector = self._model.encode(text, normalize_embeddings=True)
        except Exception as e:
            logger.warning("Embedding failed: %s", e)
            return None
        return np.asarray(vector, dtype=np.float32).tolist()


@dataclass
class EmbeddingsState:
    """
    Availability of the embedding provider with a fixed retry interval.

    After a failed initialization, callers are told to retry once the
    interval has passed rather than re-trying the model on every query.
    """

    available: bool = False
    last_attempt: float = 0.0
    retry_interval: float = DEFAULT_RETRY_INTERVAL

    def try_initialize(self, embedder: Embedder) -> bool:
        """Attempt to initialize the embedder and record the outcome."""
        self.last_attempt = time.time()
        try:
            embedder.initialize()
        except Exception as e:
            logger.warning("Embeddings unavailable, semantic search disabled: %s", e)
            self.available = False
            return False
        self.available = True
        return True

    def ensure_available(self, embedder: Embedder) -> bool:
        """Return availability, retrying initialization once the interval has passed."""
        if self.available:
            return True
        if time.time() - self.last_attempt >= self.retry_interval:
            return self.try_initialize(embedder)
        return False

    def seconds_until_retry(self) -> float:
        return max(0.0, self.retry_interval - (time.time() - self.last_attempt))


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine similarity of two vectors; 0.0 when either is all zeros or lengths differ."""
    a = np.asarray(a, dtype=np.float32)
    b = np.asarray(b, dtype=np.float32)
    if a.shape != b.shape:
        return 0.0
    norm = float(np.linalg.norm(a) * np.linalg.norm(b))
    if norm == 0.0:
        return 0.0
    return float(np.dot(a, b) / norm)
