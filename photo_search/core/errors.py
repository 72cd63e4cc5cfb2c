"""Error taxonomy shared by the core and the adapters."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class PhotoSearchError(Exception):
    """Base class for every error raised by photo_search."""


class LoadError(PhotoSearchError):
    """Raised when a vocabulary or merges file cannot be loaded."""

    def __init__(
        self,
        message: str,
        *,
        path: str | Path | None = None,
        line: int | None = None,
    ) -> None:
        self.path = str(path) if path is not None else None
        self.line = line
        parts = [part for part in (self.path, f"line {line}" if line else None) if part]
        location = f" ({', '.join(parts)})" if parts else ""
        super().__init__(f"{message}{location}")


class EncodingError(PhotoSearchError):
    """Raised when an encoder model rejects its input or fails internally."""


class ShapeMismatchError(PhotoSearchError, ValueError):
    """Raised when two embedding vectors (or a vector and its shape) disagree."""

    def __init__(
        self,
        message: str,
        *,
        expected: Sequence[int] | None = None,
        actual: Sequence[int] | None = None,
    ) -> None:
        self.expected = tuple(expected) if expected is not None else None
        self.actual = tuple(actual) if actual is not None else None
        super().__init__(message)


class EmptyQueryError(PhotoSearchError, ValueError):
    """Raised when a search query is empty after normalization."""


class StoreError(PhotoSearchError):
    """Raised when an embedding store cannot persist or read an item."""

    def __init__(self, item_id: str | None, message: str) -> None:
        self.item_id = item_id
        prefix = f"[{item_id}] " if item_id is not None else ""
        super().__init__(f"{prefix}{message}")


class DetectionError(PhotoSearchError):
    """Raised by detectors when an image cannot be analyzed."""


class SegmentationError(PhotoSearchError):
    """Raised when the segmentation service call fails as a whole."""
