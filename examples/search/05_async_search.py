"""Async search with a lazily built, shared encoder."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Sequence

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "photo_search").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from photo_search import (
    AsyncSearchOrchestrator,
    AsyncSingleFlightProvider,
    EmbeddingVector,
    InMemoryEmbeddingStore,
    Tokenizer,
)


def whole_word_merges(words: Sequence[str]) -> dict[tuple[str, str], int]:
    """Merge rules that fold each word back into a single token."""

    merges: dict[tuple[str, str], int] = {}
    for word in words:
        merged = word[0]
        for index, char in enumerate(word[1:], start=1):
            right = char + "</w>" if index == len(word) - 1 else char
            merges.setdefault((merged, right), len(merges))
            merged += right
    return merges


class SlowModel:
    def __init__(self) -> None:
        print("Loading model once...")

    def encode(self, token_ids: Sequence[int]) -> EmbeddingVector:
        return EmbeddingVector.from_values([1.0, float(len(set(token_ids))) / 10.0])


class LazyGateway:
    context_length = 8

    def __init__(self) -> None:
        self.provider = AsyncSingleFlightProvider(SlowModel, name="slow model")

    async def embed_text(self, token_ids: Sequence[int]) -> EmbeddingVector:
        model = await self.provider.get()
        return model.encode(token_ids)

    async def embed_image(self, image_bytes: bytes) -> EmbeddingVector:
        raise NotImplementedError


async def main() -> None:
    tokenizer = Tokenizer(
        {"<|startoftext|>": 0, "<|endoftext|>": 1, "[PAD]": 2, "[UNK]": 3, "sofa</w>": 4},
        whole_word_merges(["sofa"]),
    )
    store = InMemoryEmbeddingStore()
    store.save("wide", EmbeddingVector.from_values([1.0, 0.0]))
    store.save("tall", EmbeddingVector.from_values([0.0, 1.0]))

    orchestrator = AsyncSearchOrchestrator(tokenizer, LazyGateway(), store)

    # Concurrent first queries share a single model construction.
    results = await asyncio.gather(
        orchestrator.search("sofa"),
        orchestrator.search("red sofa"),
        orchestrator.search("sofa"),
    )
    for result in results:
        print(result)


if __name__ == "__main__":
    asyncio.run(main())
