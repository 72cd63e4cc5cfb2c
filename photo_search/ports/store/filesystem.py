"""Filesystem embedding store: one directory per item.

Layout under `root`:

    counter.json                  next id number for `allocate_id()`
    <item_id>/embedding.json      persistence record {"shape", "scalars"}
    <item_id>/masks/mask_<n>.png  optional segmentation masks
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Mapping, Optional

from ...core.errors import StoreError
from ...core.vectors.vector_codecs import EmbeddingRecordCodec
from ...core.vectors.vector_types import EmbeddingEntry, EmbeddingVector

logger = logging.getLogger(__name__)

EMBEDDING_FILE = "embedding.json"
MASK_FOLDER = "masks"
COUNTER_FILE = "counter.json"
ID_PREFIX = "item_"

_MASK_NAME = re.compile(r"^mask_(\d+)\.png$")
_VALID_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class FileEmbeddingStore:
    """Persists embeddings as JSON records in per-item folders."""

    def __init__(
        self,
        root: str | Path,
        *,
        codec: EmbeddingRecordCodec | None = None,
    ) -> None:
        self.root = Path(root)
        self.codec = codec or EmbeddingRecordCodec()
        self._counter_lock = threading.Lock()

    def allocate_id(self) -> str:
        """Reserve the next zero-padded item id (`item_000000`, ...)."""

        with self._counter_lock:
            counter_path = self.root / COUNTER_FILE
            current = 0
            if counter_path.exists():
                try:
                    current = int(json.loads(counter_path.read_text(encoding="utf-8")))
                except (OSError, ValueError, TypeError) as exc:
                    raise StoreError(None, f"Unreadable id counter: {exc}") from exc
            try:
                self._write_atomic(counter_path, json.dumps(current + 1).encode("utf-8"))
            except OSError as exc:
                raise StoreError(None, f"Cannot update id counter: {exc}") from exc
        return f"{ID_PREFIX}{current:06d}"

    def save(self, item_id: str, vector: EmbeddingVector) -> None:
        folder = self._item_folder(item_id)
        payload = self.codec.dumps(vector).encode("utf-8")
        try:
            folder.mkdir(parents=True, exist_ok=True)
            self._write_atomic(folder / EMBEDDING_FILE, payload)
        except OSError as exc:
            raise StoreError(item_id, f"Cannot save embedding: {exc}") from exc

    def load_all(self) -> list[EmbeddingEntry]:
        """Load every item sorted by id; unreadable records load as absent."""

        if not self.root.exists():
            return []
        try:
            folders = sorted(
                (path for path in self.root.iterdir() if path.is_dir()),
                key=lambda path: path.name,
            )
        except OSError as exc:
            raise StoreError(None, f"Cannot list store root {self.root}: {exc}") from exc
        return [EmbeddingEntry(id=folder.name, vector=self._load_vector(folder)) for folder in folders]

    def save_masks(
        self, item_id: str, masks: Mapping[int, Optional[bytes]]
    ) -> dict[int, StoreError]:
        """Write present masks as PNG files; failures are returned per index."""

        failures: dict[int, StoreError] = {}
        mask_folder = self._item_folder(item_id) / MASK_FOLDER
        try:
            mask_folder.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            error = StoreError(item_id, f"Cannot create mask folder: {exc}")
            return {index: error for index, mask in masks.items() if mask is not None}

        for index in sorted(masks):
            mask = masks[index]
            if mask is None:
                continue
            try:
                self._write_atomic(mask_folder / f"mask_{index}.png", mask)
            except OSError as exc:
                logger.warning("%s: cannot save mask %d: %s", item_id, index, exc)
                failures[index] = StoreError(item_id, f"Cannot save mask {index}: {exc}")
        return failures

    def load_masks(self, item_id: str) -> dict[int, bytes]:
        mask_folder = self._item_folder(item_id) / MASK_FOLDER
        if not mask_folder.is_dir():
            return {}
        masks: dict[int, bytes] = {}
        for path in mask_folder.iterdir():
            match = _MASK_NAME.match(path.name)
            if match is None:
                continue
            try:
                masks[int(match.group(1))] = path.read_bytes()
            except OSError as exc:
                logger.warning("%s: cannot read %s: %s", item_id, path.name, exc)
        return dict(sorted(masks.items()))

    def _load_vector(self, folder: Path) -> EmbeddingVector | None:
        path = folder / EMBEDDING_FILE
        if not path.exists():
            return None
        try:
            return self.codec.loads(path.read_bytes())
        except (OSError, ValueError) as exc:
            logger.warning("%s: treating embedding as absent: %s", folder.name, exc)
            return None

    def _item_folder(self, item_id: str) -> Path:
        if not _VALID_ID.match(item_id):
            raise StoreError(item_id, "Item id must be a plain folder name.")
        return self.root / item_id

    @staticmethod
    def _write_atomic(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
