"""Shared embedding entities used by ports, ranker and orchestrators."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..errors import ShapeMismatchError


@dataclass(frozen=True)
class EmbeddingVector:
    """Fixed-shape sequence of float scalars produced by an encoder model."""

    shape: tuple[int, ...]
    scalars: tuple[float, ...]

    def __post_init__(self) -> None:
        shape = tuple(int(dim) for dim in self.shape)
        scalars = tuple(float(value) for value in self.scalars)
        if not shape or any(dim <= 0 for dim in shape):
            raise ShapeMismatchError(
                f"Embedding shape must contain positive dimensions, got {shape}",
                actual=shape,
            )
        if math.prod(shape) != len(scalars):
            raise ShapeMismatchError(
                f"Embedding shape {shape} expects {math.prod(shape)} scalars, "
                f"got {len(scalars)}",
                expected=shape,
                actual=(len(scalars),),
            )
        if not all(math.isfinite(value) for value in scalars):
            raise ValueError("Embedding scalars must be finite numbers.")
        object.__setattr__(self, "shape", shape)
        object.__setattr__(self, "scalars", scalars)

    @classmethod
    def from_values(cls, values: Iterable[float]) -> "EmbeddingVector":
        """Build a 1-D vector from a flat sequence of values."""

        scalars = tuple(float(value) for value in values)
        return cls(shape=(len(scalars),), scalars=scalars)

    def __len__(self) -> int:
        return len(self.scalars)


@dataclass(frozen=True)
class EmbeddingEntry:
    """One stored item; `vector` is None when no embedding is available."""

    id: str
    vector: EmbeddingVector | None = None


@dataclass(frozen=True)
class RankedResult:
    """Represents one scored search hit."""

    id: str
    score: float


def coerce_vector(value: EmbeddingVector | Sequence[float]) -> EmbeddingVector:
    """Accept either an `EmbeddingVector` or a flat float sequence."""
    if isinstance(value, EmbeddingVector):
        return value
    return EmbeddingVector.from_values(value)
