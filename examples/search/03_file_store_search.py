"""End-to-end search over a filesystem store with a stand-in text encoder."""

from __future__ import annotations

import logging
import sys
import tempfile
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
    EmbeddingVector,
    EmptyQueryError,
    FileEmbeddingStore,
    SearchOrchestrator,
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


class KeywordGateway:
    """Maps a few token ids onto axes of a 3-d space."""

    context_length = 16

    def __init__(self, axes: dict[int, int]) -> None:
        self.axes = axes

    def embed_text(self, token_ids: Sequence[int]) -> EmbeddingVector:
        values = [0.0, 0.0, 0.0]
        for token_id in token_ids:
            if token_id in self.axes:
                values[self.axes[token_id]] += 1.0
        return EmbeddingVector.from_values(values)

    def embed_image(self, image_bytes: bytes) -> EmbeddingVector:
        raise NotImplementedError


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    vocabulary = {"<|startoftext|>": 0, "<|endoftext|>": 1, "[PAD]": 2, "[UNK]": 3}
    for word in ("sofa", "chair", "lamp"):
        vocabulary[f"{word}</w>"] = len(vocabulary)
    tokenizer = Tokenizer(vocabulary, whole_word_merges(["sofa", "chair", "lamp"]))
    gateway = KeywordGateway({4: 0, 5: 1, 6: 2})

    with tempfile.TemporaryDirectory() as tmp:
        store = FileEmbeddingStore(Path(tmp) / "photos")
        for vector in ([1.0, 0.2, 0.0], [0.1, 1.0, 0.0], [0.0, 0.0, 1.0]):
            store.save(store.allocate_id(), EmbeddingVector.from_values(vector))

        orchestrator = SearchOrchestrator(tokenizer, gateway, store)
        print("sofa:", orchestrator.search("Sofa"))
        print("chair and sofa:", orchestrator.search("chair sofa"))

        try:
            orchestrator.search("   ")
        except EmptyQueryError as exc:
            print("Empty query:", exc)


if __name__ == "__main__":
    main()
