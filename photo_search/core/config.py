"""Configuration for wiring the search and analysis flows."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

CONFIG_SECTION = "photo_search"


@dataclass(frozen=True)
class PhotoSearchConfig:
    """Settings shared by the tokenizer, encoders, store and orchestrators."""

    vocabulary_path: str = "vocab.json"
    merges_path: str = "merges.txt"
    model_name: str = "openai/clip-vit-base-patch32"
    context_length: int = 77
    image_size: int = 224
    similarity_threshold: float = 0.1
    store_root: str = "photo_search_data"
    segmentation_url: str = "http://localhost:8080"
    device: str = "cpu"

    def __post_init__(self) -> None:
        if self.context_length < 2:
            raise ValueError("context_length must be >= 2")
        if self.image_size <= 0:
            raise ValueError("image_size must be > 0")
        if not -1.0 <= self.similarity_threshold <= 1.0:
            raise ValueError("similarity_threshold must be within [-1, 1]")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PhotoSearchConfig":
        """Build a config from a mapping, rejecting unknown keys."""

        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {unknown}")
        return cls(**dict(data))


def load_config(config_path: Path | str) -> PhotoSearchConfig:
    """Load configuration from a YAML file.

    The settings may sit at the top level or under a `photo_search:` section.

    Raises:
        FileNotFoundError: If the configuration file is not found.
        ValueError: If the YAML is invalid or contains unknown keys.
    """
    path = Path(config_path)

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise FileNotFoundError(f"Configuration file not found: {path}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Error parsing YAML file '{path}': {e}") from e

    data = data or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration in '{path}' must be a mapping")
    section = data.get(CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ValueError(f"'{CONFIG_SECTION}' section in '{path}' must be a mapping")
    return PhotoSearchConfig.from_mapping(section)
