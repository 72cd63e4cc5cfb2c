"""Photo analysis: detect objects, segment them, embed and store the photo.

Each step after detection may fail independently. Failures are recorded on
the `AnalysisResult` and the remaining steps still run, so a segmentation
outage does not lose the embedding and vice versa.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from .contracts import DetectorPort, EmbeddingGatewayPort, EmbeddingStorePort, SegmenterPort
from .detection import Detection, PixelBox
from .errors import EncodingError, PhotoSearchError, SegmentationError, StoreError
from .vectors.vector_types import EmbeddingVector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageInput:
    """Encoded image bytes plus their pixel size."""

    data: bytes
    width: int
    height: int


@dataclass
class AnalysisResult:
    item_id: str
    detections: list[Detection] = field(default_factory=list)
    masks: dict[int, Optional[bytes]] = field(default_factory=dict)
    embedding: EmbeddingVector | None = None
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


class ImageAnalyzer:
    """Runs detection, segmentation, image embedding and persistence."""

    def __init__(
        self,
        detector: DetectorPort,
        gateway: EmbeddingGatewayPort,
        store: EmbeddingStorePort,
        *,
        segmenter: SegmenterPort | None = None,
        prepare_image: Callable[[bytes], bytes] | None = None,
    ) -> None:
        self.detector = detector
        self.gateway = gateway
        self.store = store
        self.segmenter = segmenter
        self.prepare_image = prepare_image or getattr(gateway, "prepare_image", None)

    def analyze(self, item_id: str, image: ImageInput) -> AnalysisResult:
        """Analyze one photo; `DetectionError` propagates, later failures are recorded."""

        result = AnalysisResult(item_id=item_id)
        result.detections = list(self.detector.detect(image.data))
        logger.info("%s: %d detections", item_id, len(result.detections))

        boxes: dict[int, PixelBox] = {}
        for index, detection in enumerate(result.detections):
            box = detection.rect.to_pixel_box(image.width, image.height)
            if box is None:
                logger.warning(
                    "%s: detection %d (%s) lies outside the image",
                    item_id,
                    index,
                    detection.label,
                )
                continue
            boxes[index] = box

        if self.segmenter is not None and boxes:
            result.masks = self._segment(result, image, boxes)

        result.embedding = self._embed(result, image)
        if result.embedding is not None:
            try:
                self.store.save(item_id, result.embedding)
            except StoreError as exc:
                logger.warning("%s: saving embedding failed: %s", item_id, exc)
                result.failures["store"] = str(exc)

        save_masks = getattr(self.store, "save_masks", None)
        present = {index: mask for index, mask in result.masks.items() if mask is not None}
        if save_masks is not None and present:
            try:
                mask_failures = save_masks(item_id, present)
            except StoreError as exc:
                logger.warning("%s: saving masks failed: %s", item_id, exc)
                mask_failures = {index: exc for index in present}
            for index, exc in sorted(mask_failures.items()):
                result.failures[f"mask_{index}"] = str(exc)

        return result

    def analyze_many(
        self, items: Iterable[tuple[str, ImageInput]]
    ) -> list[AnalysisResult]:
        """Analyze a batch; a failing item is recorded and the batch continues."""

        results: list[AnalysisResult] = []
        for item_id, image in items:
            try:
                results.append(self.analyze(item_id, image))
            except PhotoSearchError as exc:
                logger.warning("%s: analysis failed: %s", item_id, exc)
                results.append(
                    AnalysisResult(item_id=item_id, failures={"analysis": str(exc)})
                )
        return results

    def _segment(
        self,
        result: AnalysisResult,
        image: ImageInput,
        boxes: dict[int, PixelBox],
    ) -> dict[int, Optional[bytes]]:
        indices = sorted(boxes)
        try:
            masks = self.segmenter.segment(image.data, [boxes[i] for i in indices])  # type: ignore[union-attr]
        except SegmentationError as exc:
            logger.warning("%s: segmentation failed: %s", result.item_id, exc)
            result.failures["segmentation"] = str(exc)
            return {index: None for index in indices}

        by_index: dict[int, Optional[bytes]] = {}
        for position, index in enumerate(indices):
            by_index[index] = masks[position] if position < len(masks) else None
        missing = [index for index, mask in by_index.items() if mask is None]
        if missing:
            logger.warning("%s: no mask for detections %s", result.item_id, missing)
        return by_index

    def _embed(self, result: AnalysisResult, image: ImageInput) -> EmbeddingVector | None:
        try:
            data = self.prepare_image(image.data) if self.prepare_image else image.data
            return self.gateway.embed_image(data)
        except EncodingError as exc:
            logger.warning("%s: image embedding failed: %s", result.item_id, exc)
            result.failures["embedding"] = str(exc)
            return None
