"""HTTP client for a Segment Anything style mask service."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Optional, Sequence

import requests

from ...core.detection import PixelBox
from ...core.errors import SegmentationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080"
SEGMENT_ENDPOINT = "/api/v1/sam2/segment"


class SegmentationClient:
    """Sends an image and pixel boxes, returns one mask (or None) per box.

    The service answers `{"results": [{"box": [x0, y0, x1, y1], "score": f,
    "mask": "<base64 image>"}, ...]}` in box order. A result with a malformed
    box or mask yields None for that box only; the other masks are kept.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        endpoint: str = SEGMENT_ENDPOINT,
        timeout: float = 30.0,
        session: requests.Session | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.url = base_url.rstrip("/") + endpoint
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = dict(headers or {})

    def segment(
        self, image_bytes: bytes, boxes: Sequence[PixelBox]
    ) -> list[Optional[bytes]]:
        """Return masks aligned with `boxes`.

        Raises:
            SegmentationError: The request, HTTP status or response body failed
                as a whole.
        """

        if not boxes:
            return []
        box_payload = json.dumps([[float(value) for value in box] for box in boxes])
        try:
            response = self.session.post(
                self.url,
                files={"image": ("crop.jpg", image_bytes, "image/jpeg")},
                data={"boxes": box_payload},
                headers=self.headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            raise SegmentationError(f"Segmentation request failed: {exc}") from exc
        except ValueError as exc:
            raise SegmentationError(f"Segmentation response is not JSON: {exc}") from exc

        results = body.get("results") if isinstance(body, dict) else None
        if not isinstance(results, list):
            raise SegmentationError("Segmentation response has no 'results' list.")
        if len(results) != len(boxes):
            logger.warning(
                "Segmentation returned %d results for %d boxes", len(results), len(boxes)
            )

        masks: list[Optional[bytes]] = []
        for index in range(len(boxes)):
            masks.append(_decode_result(results[index]) if index < len(results) else None)
        return masks


def _decode_result(result: Any) -> Optional[bytes]:
    if not isinstance(result, dict):
        return None
    box = result.get("box")
    mask = result.get("mask")
    if not isinstance(box, list) or len(box) != 4 or not isinstance(mask, str):
        return None
    try:
        decoded = base64.b64decode(mask, validate=True)
    except (binascii.Error, ValueError):
        return None
    return decoded or None
