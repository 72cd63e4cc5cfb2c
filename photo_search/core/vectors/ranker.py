"""Threshold-and-sort ranking of stored embeddings against a query vector."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..errors import ShapeMismatchError
from .vector_metrics import cosine_similarity
from .vector_types import EmbeddingEntry, EmbeddingVector, RankedResult

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.1

CandidateInput = EmbeddingEntry | tuple[str, EmbeddingVector | None]


@dataclass(frozen=True)
class RankingOutcome:
    """Ranked results plus ids of candidates skipped as malformed."""

    results: list[RankedResult] = field(default_factory=list)
    skipped_ids: tuple[str, ...] = ()


def select_ranked(
    scored: Iterable[tuple[str, float]],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> list[RankedResult]:
    """Keep scores strictly above `threshold`, best first, ties by id."""

    kept = [
        RankedResult(id=item_id, score=score)
        for item_id, score in scored
        if score > threshold
    ]
    kept.sort(key=lambda item: (-item.score, item.id))
    return kept


class SimilarityRanker:
    """Cosine ranking over `(id, vector)` candidates.

    The ranker is stateless apart from its policy flag and is safe to share
    between threads.
    """

    def __init__(self, *, skip_mismatched: bool = False) -> None:
        """Create a ranker.

        Args:
            skip_mismatched: When True, candidates whose shape differs from
                the query are logged and skipped instead of raising
                `ShapeMismatchError`.
        """

        self.skip_mismatched = skip_mismatched

    def rank(
        self,
        query: EmbeddingVector,
        candidates: Sequence[CandidateInput],
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> list[RankedResult]:
        """Return candidates scoring above `threshold`, best first."""

        return self.rank_detailed(query, candidates, threshold).results

    def rank_detailed(
        self,
        query: EmbeddingVector,
        candidates: Sequence[CandidateInput],
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> RankingOutcome:
        scored: list[tuple[str, float]] = []
        skipped: list[str] = []
        for candidate in candidates:
            item_id, vector = _unpack(candidate)
            if vector is None:
                continue
            try:
                score = cosine_similarity(query, vector)
            except ShapeMismatchError:
                if not self.skip_mismatched:
                    raise
                logger.warning(
                    "Skipping candidate %s: shape %s does not match query shape %s",
                    item_id,
                    vector.shape,
                    query.shape,
                )
                skipped.append(item_id)
                continue
            scored.append((item_id, score))

        return RankingOutcome(
            results=select_ranked(scored, threshold),
            skipped_ids=tuple(skipped),
        )


def _unpack(candidate: CandidateInput) -> tuple[str, EmbeddingVector | None]:
    if isinstance(candidate, EmbeddingEntry):
        return candidate.id, candidate.vector
    item_id, vector = candidate
    return item_id, vector
