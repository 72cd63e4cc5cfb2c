"""Readers for the vocabulary (`vocab.json`) and merge rules (`merges.txt`)."""

from __future__ import annotations

import json
from pathlib import Path

from .errors import LoadError

TokenPair = tuple[str, str]


def read_vocabulary(path: str | Path) -> dict[str, int]:
    """Read a JSON object mapping token strings to non-negative integer ids."""

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Cannot read vocabulary file: {exc}", path=path) from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LoadError(f"Vocabulary is not valid JSON: {exc}", path=path) from exc

    return parse_vocabulary(data, path=path)


def parse_vocabulary(data: object, *, path: str | Path | None = None) -> dict[str, int]:
    if not isinstance(data, dict):
        raise LoadError(
            f"Vocabulary must be a JSON object, got {type(data).__name__}",
            path=path,
        )
    vocabulary: dict[str, int] = {}
    for token, token_id in data.items():
        if isinstance(token_id, bool) or not isinstance(token_id, int) or token_id < 0:
            raise LoadError(
                f"Vocabulary id for {token!r} must be a non-negative integer, "
                f"got {token_id!r}",
                path=path,
            )
        vocabulary[str(token)] = token_id
    return vocabulary


def read_merges(path: str | Path) -> dict[TokenPair, int]:
    """Read merge rules; rank is the rule's 0-based position among rule lines."""

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Cannot read merges file: {exc}", path=path) from exc
    return parse_merges(text.splitlines(), path=path)


def parse_merges(
    lines: list[str],
    *,
    path: str | Path | None = None,
) -> dict[TokenPair, int]:
    merges: dict[TokenPair, int] = {}
    rank = 0
    for line_number, line in enumerate(lines, start=1):
        if line.startswith("#") or not line.strip():
            continue
        parts = line.split()
        if len(parts) != 2:
            raise LoadError(
                f"Merge rule must contain exactly two tokens, got {len(parts)}",
                path=path,
                line=line_number,
            )
        # First occurrence keeps the better rank.
        merges.setdefault((parts[0], parts[1]), rank)
        rank += 1
    return merges
