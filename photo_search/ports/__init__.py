"""Public port exports for concrete adapter implementations."""

from .encoders import ClipEmbeddingGateway
from .segmentation import SegmentationClient
from .store import FileEmbeddingStore, InMemoryEmbeddingStore

__all__ = [
    "ClipEmbeddingGateway",
    "FileEmbeddingStore",
    "InMemoryEmbeddingStore",
    "SegmentationClient",
]
