"""Cosine similarity between embedding vectors."""

from __future__ import annotations

from typing import Sequence

import numpy as np

BLOCK_SIZE = 4


class DimensionMismatchError(ValueError):
    """Raised when two vectors of different length are compared."""


def _as_vector(values: Sequence[float] | np.ndarray) -> np.ndarray:
    return np.asarray(values, dtype=np.float32).ravel()


def cosine_similarity(
    a: Sequence[float] | np.ndarray,
    b: Sequence[float] | np.ndarray,
    *,
    block_size: int = BLOCK_SIZE,
) -> float:
    """Return ``dot(a, b) / (|a| * |b|)`` computed in float32.

    Full blocks of ``block_size`` elements are reduced with vectorized
    multiply and row sums; the remaining tail is accumulated element by
    element with the same float32 arithmetic. A zero vector on either side
    yields NaN, which callers must treat as incomparable.
    """
    if block_size < 1:
        raise ValueError("block_size must be positive")

    va = _as_vector(a)
    vb = _as_vector(b)
    if va.shape != vb.shape:
        raise DimensionMismatchError(
            f"Vectors must be of the same length ({va.size} != {vb.size})"
        )

    full = va.size - va.size % block_size
    blocks_a = va[:full].reshape(-1, block_size)
    blocks_b = vb[:full].reshape(-1, block_size)

    dot = np.float32(np.einsum("ij,ij->i", blocks_a, blocks_b).sum(dtype=np.float32))
    norm_a = np.float32(np.einsum("ij,ij->i", blocks_a, blocks_a).sum(dtype=np.float32))
    norm_b = np.float32(np.einsum("ij,ij->i", blocks_b, blocks_b).sum(dtype=np.float32))

    for x, y in zip(va[full:], vb[full:]):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    with np.errstate(divide="ignore", invalid="ignore"):
        result = dot / (np.sqrt(norm_a) * np.sqrt(norm_b))
    return float(result)
