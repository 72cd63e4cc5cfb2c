"""Rank stored embeddings against a query vector."""

from __future__ import annotations

import sys
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "photo_search").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from photo_search import (
    EmbeddingVector,
    InMemoryEmbeddingStore,
    ShapeMismatchError,
    SimilarityRanker,
    cosine_similarity,
)


def main() -> None:
    store = InMemoryEmbeddingStore()
    store.save("sofa", EmbeddingVector.from_values([0.9, 0.1, 0.0]))
    store.save("chair", EmbeddingVector.from_values([0.5, 0.5, 0.0]))
    store.save("lamp", EmbeddingVector.from_values([0.0, 0.0, 1.0]))
    store.mark_absent("pending")

    query = EmbeddingVector.from_values([1.0, 0.0, 0.0])
    print("cos(query, sofa):", cosine_similarity(query, store.get("sofa")))

    # Absent embeddings are skipped; scores must exceed the threshold.
    print("Ranked:", SimilarityRanker().rank(query, store.load_all()))
    print("Threshold 0.9:", SimilarityRanker().rank(query, store.load_all(), threshold=0.9))

    # Strict ranking fails on a shape mismatch; lenient ranking reports it.
    store.save("legacy", EmbeddingVector.from_values([1.0, 0.0]))
    try:
        SimilarityRanker().rank(query, store.load_all())
    except ShapeMismatchError as exc:
        print("Strict ranker:", exc)
    outcome = SimilarityRanker(skip_mismatched=True).rank_detailed(query, store.load_all())
    print("Lenient ranker:", outcome.results, "skipped:", outcome.skipped_ids)


if __name__ == "__main__":
    main()
