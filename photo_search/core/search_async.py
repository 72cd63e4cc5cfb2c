"""Async text-to-image search over stored embeddings."""

from __future__ import annotations

import logging

from ._async_utils import _call_port
from .contracts import (
    AsyncEmbeddingGatewayPort,
    AsyncEmbeddingStorePort,
    EmbeddingGatewayPort,
    EmbeddingStorePort,
)
from .errors import EmptyQueryError
from .search import rank_candidates, resolve_context_length
from .tokenizer import Tokenizer, normalize_text
from .vectors.ranker import DEFAULT_SIMILARITY_THRESHOLD, SimilarityRanker
from .vectors.vector_types import RankedResult

logger = logging.getLogger(__name__)


class AsyncSearchOrchestrator:
    """Async search backed by sync or async gateway and store ports.

    Blocking port calls run in a worker thread, so awaiting `search()` never
    stalls the event loop. If the caller abandons the result, the in-flight
    encoder call still runs to completion.
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        gateway: EmbeddingGatewayPort | AsyncEmbeddingGatewayPort,
        store: EmbeddingStorePort | AsyncEmbeddingStorePort,
        *,
        context_length: int | None = None,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        ranker: SimilarityRanker | None = None,
    ) -> None:
        self.tokenizer = tokenizer
        self.gateway = gateway
        self.store = store
        self.context_length = resolve_context_length(gateway, context_length)
        self.threshold = threshold
        self.ranker = ranker or SimilarityRanker(skip_mismatched=True)

    async def search(self, query_text: str) -> list[RankedResult]:
        """Async counterpart of `SearchOrchestrator.search`."""

        if not normalize_text(query_text):
            raise EmptyQueryError("Search query is empty.")
        tokenized = self.tokenizer.tokenize(query_text, min_length=self.context_length)
        if tokenized.truncated:
            logger.info(
                "Query truncated to %d tokens: %r",
                self.context_length,
                self.tokenizer.decode(tokenized.tokens),
            )

        query_vector = await _call_port(self.gateway.embed_text, list(tokenized.ids))
        candidates = await _call_port(self.store.load_all)
        outcome = rank_candidates(self.ranker, query_vector, candidates, self.threshold)
        return outcome.results
