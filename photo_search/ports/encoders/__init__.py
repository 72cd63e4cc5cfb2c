"""Embedding gateway adapter exports."""

from .clip import ClipEmbeddingGateway
from .images import resize_image, to_normalized_array

__all__ = ["ClipEmbeddingGateway", "resize_image", "to_normalized_array"]
