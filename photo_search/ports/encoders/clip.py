"""CLIP adapter implementing the embedding gateway port.

This adapter is optional and requires `torch`, `transformers`, `numpy` and
`Pillow` packages installed.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from ...core.errors import EncodingError
from ...core.providers import ModelWorker, SingleFlightProvider
from ...core.vectors.vector_types import EmbeddingVector
from .images import resize_image, to_normalized_array

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "openai/clip-vit-base-patch32"


class ClipEmbeddingGateway:
    """Text and image embeddings from a Hugging Face CLIP model.

    The model loads lazily on first use (concurrent first calls share one
    load) and every inference runs on this instance's single worker thread.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_MODEL,
        *,
        context_length: int = 77,
        image_size: int = 224,
        device: str = "cpu",
        provider: SingleFlightProvider[Any] | None = None,
    ) -> None:
        try:
            import numpy as np  # type: ignore[import-not-found]
            import torch  # type: ignore[import-not-found]
            import transformers  # type: ignore[import-not-found]
        except ImportError as exc:  # pragma: no cover - env dependent
            raise ImportError(
                "torch, transformers and numpy are required for ClipEmbeddingGateway. "
                "Install with `pip install photo-search[clip]`."
            ) from exc

        if context_length < 2:
            raise ValueError("context_length must be >= 2")
        if image_size <= 0:
            raise ValueError("image_size must be > 0")

        self._np = np
        self._torch = torch
        self._transformers = transformers
        self.model_name = model_name
        self.context_length = context_length
        self.image_size = image_size
        self.device = device
        self._provider = provider or SingleFlightProvider(
            self._load_model, name=f"CLIP model {model_name}"
        )
        self._worker = ModelWorker(name="clip-inference")

    def preload(self) -> None:
        """Start loading the model in the background."""

        self._provider.preload()

    def prepare_image(self, image_bytes: bytes) -> bytes:
        """Resize arbitrary image bytes to the model's input geometry."""

        return resize_image(image_bytes, self.image_size)

    def embed_text(self, token_ids: Sequence[int]) -> EmbeddingVector:
        ids = list(token_ids)
        if len(ids) != self.context_length:
            raise EncodingError(
                f"Text encoder expects {self.context_length} token ids, got {len(ids)}"
            )
        model = self._model()
        return self._worker.run(self._encode_text, model, ids)

    def embed_image(self, image_bytes: bytes) -> EmbeddingVector:
        pixels = to_normalized_array(image_bytes, self.image_size)
        model = self._model()
        return self._worker.run(self._encode_image, model, pixels)

    def close(self) -> None:
        self._worker.shutdown()

    def _model(self) -> Any:
        try:
            return self._provider.get()
        except EncodingError:
            raise
        except Exception as exc:
            raise EncodingError(f"Cannot load CLIP model {self.model_name}: {exc}") from exc

    def _load_model(self) -> Any:
        logger.info("Loading CLIP model %s on %s", self.model_name, self.device)
        model = self._transformers.CLIPModel.from_pretrained(self.model_name)
        model.to(self.device)
        model.eval()
        return model

    def _encode_text(self, model: Any, ids: list[int]) -> EmbeddingVector:
        torch = self._torch
        try:
            input_ids = torch.tensor([ids], dtype=torch.long, device=self.device)
            with torch.no_grad():
                features = model.get_text_features(input_ids=input_ids)
        except Exception as exc:
            raise EncodingError(f"Text encoder failed: {exc}") from exc
        return self._to_vector(features)

    def _encode_image(self, model: Any, pixels: Any) -> EmbeddingVector:
        torch = self._torch
        try:
            pixel_values = torch.from_numpy(pixels).to(self.device)
            with torch.no_grad():
                features = model.get_image_features(pixel_values=pixel_values)
        except Exception as exc:
            raise EncodingError(f"Image encoder failed: {exc}") from exc
        return self._to_vector(features)

    def _to_vector(self, features: Any) -> EmbeddingVector:
        array = features.detach().cpu().numpy().astype(self._np.float32)
        # Drop the batch axis; the store keeps one vector per item.
        if array.ndim > 1 and array.shape[0] == 1:
            array = array[0]
        try:
            return EmbeddingVector(
                shape=tuple(array.shape), scalars=tuple(array.ravel().tolist())
            )
        except ValueError as exc:
            raise EncodingError(f"Encoder produced an invalid embedding: {exc}") from exc
