"""Detection entities and decoding of raw detector outputs.

Detectors are external collaborators; this module only turns their raw
per-row class confidences and center-format boxes into `Detection` values,
using a plain max-confidence scan per row (no non-max suppression).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .errors import DetectionError

CONFIDENCE_THRESHOLD = 0.7

COCO_LABELS: tuple[str, ...] = (
    "person", "bicycle", "car", "motorbike", "aeroplane", "bus", "train",
    "truck", "boat", "traffic light", "fire hydrant", "stop sign",
    "parking meter", "bench", "bird", "cat", "dog", "horse", "sheep", "cow",
    "elephant", "bear", "zebra", "giraffe", "backpack", "umbrella", "handbag",
    "tie", "suitcase", "frisbee", "skis", "snowboard", "sports ball", "kite",
    "baseball bat", "baseball glove", "skateboard", "surfboard",
    "tennis racket", "bottle", "wine glass", "cup", "fork", "knife", "spoon",
    "bowl", "banana", "apple", "sandwich", "orange", "broccoli", "carrot",
    "hot dog", "pizza", "donut", "cake", "chair", "sofa", "pottedplant", "bed",
    "diningtable", "toilet", "tvmonitor", "laptop", "mouse", "remote",
    "keyboard", "cell phone", "microwave", "oven", "toaster", "sink",
    "refrigerator", "book", "clock", "vase", "scissors", "teddy bear",
    "hair drier", "toothbrush",
)

PixelBox = tuple[float, float, float, float]


@dataclass(frozen=True)
class NormalizedRect:
    """Rectangle in image-relative coordinates (0..1), origin top-left."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_center(
        cls, cx: float, cy: float, width: float, height: float
    ) -> "NormalizedRect":
        return cls(x=cx - width / 2, y=cy - height / 2, width=width, height=height)

    def to_pixel_box(self, image_width: int, image_height: int) -> PixelBox | None:
        """Scale to pixels and clip to the image as `(x0, y0, x1, y1)`.

        Returns None when the rectangle lies entirely outside the image.
        """

        x0 = max(0.0, self.x * image_width)
        y0 = max(0.0, self.y * image_height)
        x1 = min(float(image_width), (self.x + self.width) * image_width)
        y1 = min(float(image_height), (self.y + self.height) * image_height)
        if x1 <= x0 or y1 <= y0:
            return None
        return (x0, y0, x1, y1)


@dataclass(frozen=True)
class Detection:
    class_index: int
    label: str
    confidence: float
    rect: NormalizedRect


def decode_detections(
    confidences: Sequence[Sequence[float]],
    coordinates: Sequence[Sequence[float]],
    *,
    threshold: float = CONFIDENCE_THRESHOLD,
    labels: Sequence[str] = COCO_LABELS,
) -> list[Detection]:
    """Pick the best class per row; rows without a class above `threshold` are dropped.

    `coordinates` rows are `(cx, cy, w, h)` normalized boxes. Only the rows
    present in both inputs are decoded. A selected row whose box has fewer
    than four values raises `DetectionError`.
    """

    detections: list[Detection] = []
    for row_conf, row_box in zip(confidences, coordinates):
        best_index = -1
        best_conf = threshold
        for class_index, confidence in enumerate(row_conf):
            if confidence > best_conf:
                best_index, best_conf = class_index, float(confidence)
        if best_index < 0:
            continue
        if len(row_box) < 4:
            raise DetectionError(
                f"Detection box must have 4 values (cx, cy, w, h), got {len(row_box)}"
            )
        cx, cy, width, height = (float(value) for value in row_box[:4])
        label = labels[best_index] if best_index < len(labels) else str(best_index)
        detections.append(
            Detection(
                class_index=best_index,
                label=label,
                confidence=best_conf,
                rect=NormalizedRect.from_center(cx, cy, width, height),
            )
        )
    return detections
