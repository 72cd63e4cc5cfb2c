"""Core port contracts used by adapters, orchestrators and the analyzer."""

from __future__ import annotations

from typing import List, Mapping, Optional, Protocol, Sequence

from .detection import Detection, PixelBox
from .errors import StoreError
from .vectors.vector_types import EmbeddingEntry, EmbeddingVector


class EmbeddingGatewayPort(Protocol):
    """Text and image encoders sharing one embedding space.

    Both calls may take tens to hundreds of milliseconds and raise
    `EncodingError` on failure. Implementations may also expose
    `context_length: int`, the fixed number of token ids `embed_text` needs.
    """

    def embed_text(self, token_ids: Sequence[int]) -> EmbeddingVector: ...

    def embed_image(self, image_bytes: bytes) -> EmbeddingVector: ...


class AsyncEmbeddingGatewayPort(Protocol):
    """Async variant of `EmbeddingGatewayPort`."""

    async def embed_text(self, token_ids: Sequence[int]) -> EmbeddingVector: ...

    async def embed_image(self, image_bytes: bytes) -> EmbeddingVector: ...


class EmbeddingStorePort(Protocol):
    """Persistence of per-item embeddings keyed by opaque ids."""

    def load_all(self) -> List[EmbeddingEntry]: ...

    def save(self, item_id: str, vector: EmbeddingVector) -> None: ...


class AsyncEmbeddingStorePort(Protocol):
    """Async variant of `EmbeddingStorePort`."""

    async def load_all(self) -> List[EmbeddingEntry]: ...

    async def save(self, item_id: str, vector: EmbeddingVector) -> None: ...


class MaskStorePort(Protocol):
    """Optional store capability for segmentation masks."""

    def save_masks(
        self, item_id: str, masks: Mapping[int, Optional[bytes]]
    ) -> dict[int, StoreError]: ...


class DetectorPort(Protocol):
    """Object detector returning labelled, normalized rectangles."""

    def detect(self, image_bytes: bytes) -> Sequence[Detection]: ...


class SegmenterPort(Protocol):
    """Segmentation collaborator: one mask (or None) per input box."""

    def segment(
        self, image_bytes: bytes, boxes: Sequence[PixelBox]
    ) -> List[Optional[bytes]]: ...
