"""photo_search: free-text search over a personal collection of analyzed photos."""

from .core import *  # noqa: F401,F403
from .core import __all__ as _core_all
from .ports import (
    ClipEmbeddingGateway,
    FileEmbeddingStore,
    InMemoryEmbeddingStore,
    SegmentationClient,
)

__all__ = [
    *_core_all,
    "ClipEmbeddingGateway",
    "FileEmbeddingStore",
    "InMemoryEmbeddingStore",
    "SegmentationClient",
]
