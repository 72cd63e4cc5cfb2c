"""Vector similarity helpers."""

from __future__ import annotations

import math

from ..errors import ShapeMismatchError
from .vector_types import EmbeddingVector


def ensure_same_shape(left: EmbeddingVector, right: EmbeddingVector) -> None:
    """Raise `ShapeMismatchError` unless both vectors have identical shapes."""

    if left.shape != right.shape:
        raise ShapeMismatchError(
            f"Vector shape mismatch: expected {left.shape}, got {right.shape}",
            expected=left.shape,
            actual=right.shape,
        )


def dot(left: EmbeddingVector, right: EmbeddingVector) -> float:
    ensure_same_shape(left, right)
    return math.fsum(a * b for a, b in zip(left.scalars, right.scalars))


def norm(vector: EmbeddingVector) -> float:
    return math.sqrt(math.fsum(a * a for a in vector.scalars))


def cosine_similarity(left: EmbeddingVector, right: EmbeddingVector) -> float:
    """Cosine similarity in [-1, 1]; 0.0 when either vector has zero norm."""

    product = dot(left, right)
    norm_left = norm(left)
    norm_right = norm(right)
    if norm_left == 0.0 or norm_right == 0.0:
        return 0.0
    score = product / (norm_left * norm_right)
    if not math.isfinite(score):
        return 0.0
    return max(-1.0, min(1.0, score))
