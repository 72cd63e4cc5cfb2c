"""Persistence record codec for embedding vectors.

A record is a JSON object `{"shape": [...], "scalars": [...]}`, one per
stored item.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Mapping

from .vector_types import EmbeddingVector

_RECORD_KEYS = frozenset({"shape", "scalars"})


@dataclass(frozen=True)
class EmbeddingRecordCodec:
    """Round-trips `EmbeddingVector` values through the persistence record."""

    indent: int | None = None

    def to_record(self, vector: EmbeddingVector) -> dict[str, list[Any]]:
        return {
            "shape": list(vector.shape),
            "scalars": list(vector.scalars),
        }

    def from_record(self, record: Mapping[str, Any]) -> EmbeddingVector:
        if not isinstance(record, Mapping):
            raise ValueError(
                f"Embedding record must be an object, got {type(record).__name__}."
            )
        missing = _RECORD_KEYS - set(record)
        if missing:
            raise ValueError(f"Embedding record is missing keys: {sorted(missing)}")

        shape = record["shape"]
        scalars = record["scalars"]
        if not isinstance(shape, list) or not all(
            isinstance(dim, int) and not isinstance(dim, bool) for dim in shape
        ):
            raise ValueError("Embedding record 'shape' must be a list of integers.")
        if not isinstance(scalars, list) or not all(
            isinstance(value, (int, float)) and not isinstance(value, bool)
            for value in scalars
        ):
            raise ValueError("Embedding record 'scalars' must be a list of numbers.")
        if not all(math.isfinite(value) for value in scalars):
            raise ValueError("Embedding record 'scalars' must be finite numbers.")

        # ShapeMismatchError (a ValueError) when shape and scalars disagree.
        return EmbeddingVector(shape=tuple(shape), scalars=tuple(scalars))

    def dumps(self, vector: EmbeddingVector) -> str:
        return json.dumps(self.to_record(vector), indent=self.indent)

    def loads(self, raw: str | bytes) -> EmbeddingVector:
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Embedding record is not valid JSON: {exc}") from exc
        return self.from_record(parsed)
