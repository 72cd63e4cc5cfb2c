"""Embedding store adapter exports."""

from .filesystem import FileEmbeddingStore
from .in_memory import InMemoryEmbeddingStore

__all__ = ["FileEmbeddingStore", "InMemoryEmbeddingStore"]
