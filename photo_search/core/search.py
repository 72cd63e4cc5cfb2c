"""Text-to-image search over stored embeddings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .contracts import EmbeddingGatewayPort, EmbeddingStorePort
from .errors import EmptyQueryError, ShapeMismatchError
from .tokenizer import Tokenizer, TokenizedText, normalize_text
from .vectors.ranker import DEFAULT_SIMILARITY_THRESHOLD, RankingOutcome, SimilarityRanker
from .vectors.vector_types import EmbeddingEntry, EmbeddingVector, RankedResult

if TYPE_CHECKING:
    from .config import PhotoSearchConfig

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_LENGTH = 77


def resolve_context_length(gateway: object, context_length: int | None) -> int:
    """Explicit length, else the gateway's `context_length`, else 77."""
    if context_length is not None:
        return context_length
    return int(getattr(gateway, "context_length", DEFAULT_CONTEXT_LENGTH))


def rank_candidates(
    ranker: SimilarityRanker,
    query_vector: EmbeddingVector,
    candidates: list[EmbeddingEntry],
    threshold: float,
) -> RankingOutcome:
    """Rank candidates, logging skipped records.

    Raises `ShapeMismatchError` when the query matches the shape of none of
    the present candidates: the query itself is then malformed.
    """

    outcome = ranker.rank_detailed(query_vector, candidates, threshold)
    if not outcome.skipped_ids:
        return outcome
    present = sum(1 for entry in candidates if entry.vector is not None)
    if len(outcome.skipped_ids) == present:
        raise ShapeMismatchError(
            f"Query embedding shape {query_vector.shape} matches none of the "
            f"{present} stored embeddings",
            actual=query_vector.shape,
        )
    logger.warning(
        "Skipped %d malformed stored embeddings: %s",
        len(outcome.skipped_ids),
        ", ".join(outcome.skipped_ids),
    )
    return outcome


class SearchOrchestrator:
    """Tokenize and embed a query, then rank every stored embedding against it.

    The orchestrator is stateless between calls; all state lives in its
    collaborators. Calls block for encoder latency, so run them off any
    latency-sensitive thread (see `AsyncSearchOrchestrator`).
    """

    def __init__(
        self,
        tokenizer: Tokenizer,
        gateway: EmbeddingGatewayPort,
        store: EmbeddingStorePort,
        *,
        context_length: int | None = None,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        ranker: SimilarityRanker | None = None,
    ) -> None:
        """Create a search orchestrator.

        Args:
            tokenizer: Tokenizer matching the text encoder's vocabulary.
            gateway: Embedding gateway producing query vectors.
            store: Store providing the candidate embeddings.
            context_length: Fixed token length the text encoder expects;
                defaults to `gateway.context_length` or 77.
            threshold: Results must score strictly above this value.
            ranker: Ranker to use; by default malformed stored candidates are
                skipped so one bad record does not block the search.
        """

        self.tokenizer = tokenizer
        self.gateway = gateway
        self.store = store
        self.context_length = resolve_context_length(gateway, context_length)
        self.threshold = threshold
        self.ranker = ranker or SimilarityRanker(skip_mismatched=True)

    @classmethod
    def from_config(cls, config: "PhotoSearchConfig") -> "SearchOrchestrator":
        """Wire tokenizer files, the CLIP gateway and the filesystem store."""

        from ..ports.encoders.clip import ClipEmbeddingGateway
        from ..ports.store.filesystem import FileEmbeddingStore

        tokenizer = Tokenizer.from_files(config.vocabulary_path, config.merges_path)
        gateway = ClipEmbeddingGateway(
            config.model_name,
            context_length=config.context_length,
            image_size=config.image_size,
            device=config.device,
        )
        store = FileEmbeddingStore(config.store_root)
        return cls(
            tokenizer,
            gateway,
            store,
            context_length=config.context_length,
            threshold=config.similarity_threshold,
        )

    def prepare_query(self, query_text: str) -> TokenizedText:
        """Validate and tokenize a query; raises `EmptyQueryError` when blank."""

        if not normalize_text(query_text):
            raise EmptyQueryError("Search query is empty.")
        tokenized = self.tokenizer.tokenize(query_text, min_length=self.context_length)
        if tokenized.truncated:
            logger.info(
                "Query truncated to %d tokens: %r",
                self.context_length,
                self.tokenizer.decode(tokenized.tokens),
            )
        return tokenized

    def search(self, query_text: str) -> list[RankedResult]:
        """Return stored items matching `query_text`, best first.

        Raises:
            EmptyQueryError: The query is blank; no embedding call is made.
            EncodingError: The text encoder failed; propagated unchanged.
            StoreError: Candidate embeddings could not be loaded.
            ShapeMismatchError: The query embedding matches the shape of no
                stored embedding.
        """

        tokenized = self.prepare_query(query_text)
        query_vector = self.gateway.embed_text(list(tokenized.ids))
        candidates = self.store.load_all()
        outcome = rank_candidates(self.ranker, query_vector, candidates, self.threshold)
        logger.debug(
            "Query %r matched %d of %d candidates",
            query_text,
            len(outcome.results),
            len(candidates),
        )
        return outcome.results
