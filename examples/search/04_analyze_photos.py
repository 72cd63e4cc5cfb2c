"""Analyze photos with stand-in detector, segmenter and encoder."""

from __future__ import annotations

import logging
import sys
import tempfile
from pathlib import Path
from typing import Optional, Sequence

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "photo_search").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from photo_search import (
    Detection,
    EmbeddingVector,
    FileEmbeddingStore,
    ImageAnalyzer,
    ImageInput,
    SegmentationError,
    decode_detections,
)


class RawOutputDetector:
    """Decodes fixed raw detector rows: one confident sofa, one weak row."""

    def detect(self, image_bytes: bytes) -> list[Detection]:
        confidences = [[0.0] * 80, [0.0] * 80]
        confidences[0][57] = 0.92
        confidences[1][56] = 0.4
        coordinates = [[0.5, 0.6, 0.5, 0.3], [0.2, 0.2, 0.1, 0.1]]
        return decode_detections(confidences, coordinates)


class FlakySegmenter:
    def segment(self, image_bytes: bytes, boxes: Sequence[tuple[float, float, float, float]]) -> list[Optional[bytes]]:
        if image_bytes.startswith(b"offline"):
            raise SegmentationError("segmentation service unreachable")
        return [b"\x89PNG-mask" for _ in boxes]


class ConstantEncoder:
    def embed_text(self, token_ids: Sequence[int]) -> EmbeddingVector:
        raise NotImplementedError

    def embed_image(self, image_bytes: bytes) -> EmbeddingVector:
        return EmbeddingVector.from_values([0.3, 0.7, 0.1])


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    with tempfile.TemporaryDirectory() as tmp:
        store = FileEmbeddingStore(Path(tmp))
        analyzer = ImageAnalyzer(
            RawOutputDetector(), ConstantEncoder(), store, segmenter=FlakySegmenter()
        )
        photos = [
            (store.allocate_id(), ImageInput(b"living-room", 640, 480)),
            (store.allocate_id(), ImageInput(b"offline-kitchen", 640, 480)),
        ]
        for result in analyzer.analyze_many(photos):
            print(result.item_id, [d.label for d in result.detections], "failures:", result.failures)
            print("  masks on disk:", sorted(store.load_masks(result.item_id)))

        print("Stored embeddings:", store.load_all())


if __name__ == "__main__":
    main()
