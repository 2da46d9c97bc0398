"""Token to vector lookup.

Two sources are supported: a word-vector file in the word2vec/fastText text
format (``.vec``), held read-only in memory, and the sentence-transformers
encoder. A missing token is reported as ``None``; callers decide what a miss
means for them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Protocol

import numpy as np

from namefinder.embedding.encoder import EmbeddingConfig, EmbeddingModel

LOGGER = logging.getLogger(__name__)


class EmbeddingLoadError(RuntimeError):
    """Raised when an embedding model cannot be loaded."""


class EmbeddingLookup(Protocol):
    dimension: int

    def lookup(self, token: str) -> Optional[np.ndarray]: ...


def _freeze(values: Iterable[float] | np.ndarray) -> np.ndarray:
    vector = np.array(values, dtype=np.float32).ravel()
    vector.setflags(write=False)
    return vector


class WordVectors:
    """Read-only vocabulary of vectors sharing one dimension."""

    def __init__(self, vectors: Mapping[str, np.ndarray], dimension: int) -> None:
        self.dimension = dimension
        self._vectors = dict(vectors)

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, token: object) -> bool:
        return token in self._vectors

    def lookup(self, token: str) -> Optional[np.ndarray]:
        return self._vectors.get(token)

    @classmethod
    def from_mapping(cls, vectors: Mapping[str, Iterable[float]]) -> "WordVectors":
        frozen = {token: _freeze(values) for token, values in vectors.items()}
        dimensions = {vector.size for vector in frozen.values()}
        if len(dimensions) > 1:
            raise EmbeddingLoadError(f"Vectors have mixed dimensions: {sorted(dimensions)}")
        return cls(frozen, dimensions.pop() if dimensions else 0)

    @classmethod
    def load(cls, path: Path | str) -> "WordVectors":
        """Read a text word-vector file, with or without a ``count dim`` header."""
        path = Path(path)
        try:
            handle = path.open("r", encoding="utf-8", errors="replace")
        except OSError as exc:
            raise EmbeddingLoadError(f"Cannot open word vectors {path}: {exc}") from exc

        vectors: Dict[str, np.ndarray] = {}
        dimension: int | None = None
        with handle:
            for line_number, line in enumerate(handle, start=1):
                fields = line.rstrip().split(" ")
                if line_number == 1 and len(fields) == 2 and all(f.isdigit() for f in fields):
                    dimension = int(fields[1])
                    continue
                if len(fields) < 2:
                    continue
                token, values = fields[0], fields[1:]
                if dimension is None:
                    dimension = len(values)
                if len(values) != dimension:
                    raise EmbeddingLoadError(
                        f"{path}:{line_number}: expected {dimension} values, found {len(values)}"
                    )
                try:
                    vector = _freeze([float(value) for value in values])
                except ValueError as exc:
                    raise EmbeddingLoadError(f"{path}:{line_number}: {exc}") from exc
                # first occurrence wins
                vectors.setdefault(token, vector)

        if dimension is None:
            raise EmbeddingLoadError(f"No vectors found in {path}")
        LOGGER.info("Loaded %d word vectors (dimension %d) from %s", len(vectors), dimension, path)
        return cls(vectors, dimension)


class EncoderLookup:
    """Lookup that embeds any non-blank token with the sentence encoder."""

    def __init__(self, model: EmbeddingModel) -> None:
        self.model = model
        self.dimension = model.dimension
        self._cache: Dict[str, np.ndarray] = {}

    def lookup(self, token: str) -> Optional[np.ndarray]:
        if not token.strip():
            return None
        vector = self._cache.get(token)
        if vector is None:
            vector = _freeze(self.model.embed_query(token))
            self._cache[token] = vector
        return vector


def load_lookup(vectors_path: Path | None, model_name: str) -> EmbeddingLookup:
    """Load word vectors when a file is given, otherwise the sentence encoder."""
    if vectors_path is not None:
        return WordVectors.load(vectors_path)
    try:
        model = EmbeddingModel(EmbeddingConfig(model_name=model_name))
    except Exception as exc:
        raise EmbeddingLoadError(f"Cannot load embedding model {model_name}: {exc}") from exc
    return EncoderLookup(model)


def name_keys(name: str) -> List[str]:
    """Vocabulary keys tried for an entry name: as is, its stem, the lowered stem."""
    keys: List[str] = []
    stem = Path(name).stem
    for key in (name, stem, stem.lower()):
        if key and key not in keys:
            keys.append(key)
    return keys


def resolve_name(lookup: EmbeddingLookup, name: str) -> Optional[np.ndarray]:
    """Return the first vector found among the keys of ``name``, or ``None``."""
    for key in name_keys(name):
        vector = lookup.lookup(key)
        if vector is not None:
            return vector
    return None
