"""In-memory embedding store for testing and local development."""

from __future__ import annotations

from typing import Optional, Sequence

from ...core.vectors.vector_types import EmbeddingEntry, EmbeddingVector


class InMemoryEmbeddingStore:
    """Simple dict-backed implementation of the embedding store port."""

    def __init__(self) -> None:
        self._entries: dict[str, Optional[EmbeddingVector]] = {}

    def save(self, item_id: str, vector: EmbeddingVector) -> None:
        self._entries[item_id] = vector

    def mark_absent(self, item_id: str) -> None:
        """Register an item whose embedding could not be computed."""

        self._entries[item_id] = None

    def load_all(self) -> list[EmbeddingEntry]:
        return [
            EmbeddingEntry(id=item_id, vector=self._entries[item_id])
            for item_id in sorted(self._entries)
        ]

    def get(self, item_id: str) -> Optional[EmbeddingVector]:
        return self._entries.get(item_id)

    def delete(self, ids: Sequence[str]) -> int:
        deleted = 0
        for item_id in ids:
            if item_id in self._entries:
                del self._entries[item_id]
                deleted += 1
        return deleted

    def __len__(self) -> int:
        return len(self._entries)
