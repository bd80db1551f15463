"""Tests for embedding availability and vector math."""

import sys
from unittest.mock import MagicMock

import numpy as np
import pytest

from docs_mcp import embeddings
from docs_mcp.embeddings import (
    EmbeddingsState,
    SentenceTransformerEmbedder,
    cosine_similarity,
)


class TestCosineSimilarity:
    def test_identical(self):
        assert cosine_similarity(np.array([1.0, 2.0]), np.array([1.0, 2.0])) == pytest.approx(1.0)

    def test_orthogonal(self):
        assert cosine_similarity(np.array([1.0, 0.0]), np.array([0.0, 3.0])) == 0.0

    def test_opposite(self):
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_zero_vector(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0

    def test_length_mismatch(self):
        assert cosine_similarity([1.0, 0.0, 0.0], [1.0, 0.0]) == 0.0


class TestEmbeddingsState:
    def test_successful_initialize(self, fake_embedder):
        state = EmbeddingsState()

        assert state.try_initialize(fake_embedder) is True
        assert state.available is True
        assert fake_embedder.initialized

    def test_failed_initialize(self, embedder_factory, caplog):
        state = EmbeddingsState()

        with caplog.at_level("WARNING"):
            assert state.try_initialize(embedder_factory(fail_initialize=True)) is False

        assert state.available is False
        assert state.last_attempt > 0
        assert "Embeddings unavailable" in caplog.text

    def test_no_retry_before_interval(self, embedder_factory):
        embedder = embedder_factory(fail_initialize=True)
        state = EmbeddingsState(retry_interval=300)
        state.try_initialize(embedder)

        embedder.fail_initialize = False
        assert state.ensure_available(embedder) is False
        assert state.seconds_until_retry() > 290

    def test_retry_after_interval(self, embedder_factory, monkeypatch):
        embedder = embedder_factory(fail_initialize=True)
        state = EmbeddingsState(retry_interval=300)
        state.try_initialize(embedder)

        embedder.fail_initialize = False
        now = state.last_attempt + 301
        monkeypatch.setattr(embeddings.time, "time", lambda: now)

        assert state.ensure_available(embedder) is True
        assert state.available is True

    def test_available_short_circuits(self):
        embedder = MagicMock()
        state = EmbeddingsState(available=True)

        assert state.ensure_available(embedder) is True
        embedder.initialize.assert_not_called()


class TestSentenceTransformerEmbedder:
    def test_embed_before_initialize(self):
        assert SentenceTransformerEmbedder().embed("text") is None

    def test_initialize_loads_model_once(self, monkeypatch):
        model = MagicMock()
        model.encode.return_value = np.array([0.5, 0.5], dtype=np.float32)
        module = MagicMock()
        module.SentenceTransformer.return_value = model
        monkeypatch.setitem(sys.modules, "sentence_transformers", module)

        embedder = SentenceTransformerEmbedder("test-model")
        embedder.initialize()
        embedder.initialize()

        module.SentenceTransformer.assert_called_once_with("test-model")
        assert embedder.embed("hello") == [0.5, 0.5]
        model.encode.assert_called_with("hello", normalize_embeddings=True)

    def test_encode_failure_returns_none(self, monkeypatch):
        model = MagicMock()
        model.encode.side_effect = RuntimeError("oom")
        module = MagicMock()
        module.SentenceTransformer.return_value = model
        monkeypatch.setitem(sys.modules, "sentence_transformers", module)

        embedder = SentenceTransformerEmbedder()
        embedder.initialize()

        assert embedder.embed("hello") is None

    def test_initialize_failure_propagates(self, monkeypatch):
        module = MagicMock()
        module.SentenceTransformer.side_effect = OSError("no network")
        monkeypatch.setitem(sys.modules, "sentence_transformers", module)

        with pytest.raises(OSError):
            SentenceTransformerEmbedder().initialize()
