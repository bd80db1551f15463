"""Persistent storage for the documentation index.

The index is written as a single compressed NumPy archive::

    header             uint8  UTF-8 JSON: version, metadata, embedding ids
    chunks             uint8  UTF-8 JSON: [[file, [chunk, ...]], ...]
    embedding_lengths  int64  length of each embedding vector
    embedding_values   float32 all vectors, concatenated

The archive is loaded with ``allow_pickle=False``. Any file whose header
version differs from INDEX_VERSION is rejected as a whole.
"""

import json
import logging
import os
import tempfile
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import asdict
from pathlib import Path

import numpy as np

from docs_mcp.indexer.models import (
    CHUNK_TYPES,
    INDEX_VERSION,
    ChunkMetadata,
    DocChunk,
    DocIndex,
    IndexMetadata,
)
from docs_mcp.locking import LockError, file_lock

logger = logging.getLogger(__name__)

LockFactory = Callable[[Path], AbstractContextManager]


def _encode_json(value) -> np.ndarray:
    return np.frombuffer(json.dumps(value).encode("utf-8"), dtype=np.uint8)


def _decode_json(array: np.ndarray):
    return json.loads(array.tobytes().decode("utf-8"))


def _chunk_from_dict(data: dict) -> DocChunk:
    if data.get("chunk_type") not in CHUNK_TYPES:
        raise ValueError(f"Unknown chunk type {data.get('chunk_type')!r}")
    metadata = data.pop("metadata", None)
    return DocChunk(
        **data,
        metadata=ChunkMetadata(**metadata) if metadata else None,
    )


class IndexStore:
    """Reads and writes the index file under an advisory lock."""

    def __init__(self, index_path: Path, lock: LockFactory = file_lock):
        """
        Initialize the store.

        Args:
            index_path: Path of the index archive
            lock: Context manager factory giving exclusive access keyed by path
        """
        self.index_path = Path(index_path)
        self._lock = lock

    def save(self, index: DocIndex) -> None:
        """
        Serialize the index and atomically replace the file on disk.

        Raises:
            LockError: If the advisory lock cannot be acquired
        """
        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock(self.index_path):
            self._write(index)
        logger.debug(
            "Saved index to %s (%d files, %d chunks, %d embeddings)",
            self.index_path,
            index.metadata.file_count,
            index.metadata.chunk_count,
            len(index.embeddings),
        )

    def load(self) -> DocIndex | None:
        """
        Load the index from disk.

        Returns None when the file is missing, unreadable, from another
        schema version, or the lock cannot be taken. The caller is then
        expected to rebuild from scratch.
        """
        if not self.index_path.exists():
            return None

        try:
            with self._lock(self.index_path):
                return self._read()
        except LockError as e:
            logger.warning("Cannot lock index %s: %s", self.index_path, e)
            return None
        except Exception:
            logger.warning("Discarding unreadable index %s", self.index_path, exc_info=True)
            return None

    def _write(self, index: DocIndex) -> None:
        ids = list(index.embeddings)
        vectors = [np.asarray(index.embeddings[key], dtype=np.float32).ravel() for key in ids]

        header = {
            "version": INDEX_VERSION,
            "metadata": {
                "indexed_at": index.metadata.indexed_at,
                "file_count": index.metadata.file_count,
                "chunk_count": index.metadata.chunk_count,
            },
            "embedding_ids": ids,
        }
        chunks = [
            [file, [asdict(chunk) for chunk in file_chunks]]
            for file, file_chunks in index.chunks.items()
        ]

        fd, tmp_name = tempfile.mkstemp(
            dir=self.index_path.parent,
            prefix=f".{self.index_path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as f:
                np.savez_compressed(
                    f,
                    header=_encode_json(header),
                    chunks=_encode_json(chunks),
                    embedding_lengths=np.array([len(v) for v in vectors], dtype=np.int64),
                    embedding_values=(
                        np.concatenate(vectors) if vectors else np.zeros(0, dtype=np.float32)
                    ),
                )
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.index_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _read(self) -> DocIndex | None:
        with np.load(self.index_path, allow_pickle=False) as data:
            header = _decode_json(data["header"])
            version = header.get("version")
            if version != INDEX_VERSION:
                logger.warning(
                    "Index %s has version %s, expected %s; ignoring it",
                    self.index_path,
                    version,
                    INDEX_VERSION,
                )
                return None

            chunks_data = _decode_json(data["chunks"])
            lengths = data["embedding_lengths"].tolist()
            values = data["embedding_values"]

        ids = header["embedding_ids"]
        if len(ids) != len(lengths) or sum(lengths) != len(values):
            raise ValueError("Embedding table is inconsistent")

        embeddings: dict[str, np.ndarray] = {}
        offset = 0
        for chunk_id, length in zip(ids, lengths):
            embeddings[chunk_id] = values[offset : offset + length].copy()
            offset += length

        meta = header["metadata"]
        return DocIndex(
            chunks={
                file: [_chunk_from_dict(chunk) for chunk in file_chunks]
                for file, file_chunks in chunks_data
            },
            embeddings=embeddings,
            metadata=IndexMetadata(
                version=version,
                indexed_at=meta["indexed_at"],
                file_count=meta["file_count"],
                chunk_count=meta["chunk_count"],
            ),
        )
