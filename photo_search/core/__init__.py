"""Public core API for tokenization, ranking and search."""

from .analysis import AnalysisResult, ImageAnalyzer, ImageInput
from .config import PhotoSearchConfig, load_config
from .detection import COCO_LABELS, Detection, NormalizedRect, decode_detections
from .errors import (
    DetectionError,
    EmptyQueryError,
    EncodingError,
    LoadError,
    PhotoSearchError,
    SegmentationError,
    ShapeMismatchError,
    StoreError,
)
from .providers import AsyncSingleFlightProvider, ModelWorker, SingleFlightProvider
from .search import SearchOrchestrator
from .search_async import AsyncSearchOrchestrator
from .tokenizer import SpecialTokens, TokenizedText, Tokenizer, normalize_text
from .tokenizer_files import read_merges, read_vocabulary
from .vectors.ranker import RankingOutcome, SimilarityRanker, select_ranked
from .vectors.vector_codecs import EmbeddingRecordCodec
from .vectors.vector_metrics import cosine_similarity
from .vectors.vector_types import EmbeddingEntry, EmbeddingVector, RankedResult

__all__ = [
    "AnalysisResult",
    "ImageAnalyzer",
    "ImageInput",
    "PhotoSearchConfig",
    "load_config",
    "COCO_LABELS",
    "Detection",
    "NormalizedRect",
    "decode_detections",
    "PhotoSearchError",
    "LoadError",
    "EncodingError",
    "ShapeMismatchError",
    "EmptyQueryError",
    "StoreError",
    "DetectionError",
    "SegmentationError",
    "SingleFlightProvider",
    "AsyncSingleFlightProvider",
    "ModelWorker",
    "SearchOrchestrator",
    "AsyncSearchOrchestrator",
    "SpecialTokens",
    "TokenizedText",
    "Tokenizer",
    "normalize_text",
    "read_merges",
    "read_vocabulary",
    "RankingOutcome",
    "SimilarityRanker",
    "select_ranked",
    "EmbeddingRecordCodec",
    "cosine_similarity",
    "EmbeddingEntry",
    "EmbeddingVector",
    "RankedResult",
]
