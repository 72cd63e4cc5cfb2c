"""Byte-pair encoding tokenizer matching the text encoder's vocabulary.

The tokenizer is immutable after construction: the vocabulary and merge
table are copied into read-only mappings, so one instance can be shared
between threads without locking.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from .errors import LoadError
from .tokenizer_files import TokenPair, read_merges, read_vocabulary

logger = logging.getLogger(__name__)

_WHITESPACE_RUN = re.compile(r"\s+")


@dataclass(frozen=True)
class SpecialTokens:
    """Reserved token strings and the end-of-word marker."""

    start: str = "<|startoftext|>"
    end: str = "<|endoftext|>"
    pad: str = "[PAD]"
    unknown: str = "[UNK]"
    end_of_word: str = "</w>"

    def reserved(self) -> tuple[str, str, str, str]:
        return (self.start, self.end, self.pad, self.unknown)


@dataclass(frozen=True)
class TokenizedText:
    """Token strings and ids for one input text."""

    tokens: tuple[str, ...]
    ids: tuple[int, ...]
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.ids)


def normalize_text(text: str) -> str:
    """Trim, lowercase and collapse whitespace runs to a single space."""

    cleaned = text.strip().lower()
    return _WHITESPACE_RUN.sub(" ", cleaned).strip()


class Tokenizer:
    """BPE tokenizer driven by a vocabulary and a ranked merge table."""

    def __init__(
        self,
        vocabulary: Mapping[str, int],
        merges: Mapping[TokenPair, int],
        *,
        special_tokens: SpecialTokens | None = None,
    ) -> None:
        self.special_tokens = special_tokens or SpecialTokens()
        missing = [
            token for token in self.special_tokens.reserved() if token not in vocabulary
        ]
        if missing:
            raise LoadError(f"Vocabulary is missing reserved tokens: {missing}")

        self._vocabulary: Mapping[str, int] = MappingProxyType(dict(vocabulary))
        self._merges: Mapping[TokenPair, int] = MappingProxyType(dict(merges))
        inverse: dict[int, str] = {}
        for token, token_id in self._vocabulary.items():
            inverse.setdefault(token_id, token)
        self._inverse: Mapping[int, str] = MappingProxyType(inverse)

        self.start_token_id = self._vocabulary[self.special_tokens.start]
        self.end_token_id = self._vocabulary[self.special_tokens.end]
        self.pad_token_id = self._vocabulary[self.special_tokens.pad]
        self.unknown_token_id = self._vocabulary[self.special_tokens.unknown]

    @classmethod
    def from_files(
        cls,
        vocabulary_path: str | Path,
        merges_path: str | Path,
        *,
        special_tokens: SpecialTokens | None = None,
    ) -> "Tokenizer":
        """Load `vocab.json` and `merges.txt`; any problem raises `LoadError`."""

        vocabulary = read_vocabulary(vocabulary_path)
        merges = read_merges(merges_path)
        logger.info(
            "Loaded tokenizer: %d vocabulary entries, %d merge rules",
            len(vocabulary),
            len(merges),
        )
        return cls(vocabulary, merges, special_tokens=special_tokens)

    @property
    def vocabulary(self) -> Mapping[str, int]:
        return self._vocabulary

    @property
    def merges(self) -> Mapping[TokenPair, int]:
        return self._merges

    @property
    def vocabulary_size(self) -> int:
        return len(self._vocabulary)

    def tokenize(self, text: str, min_length: int | None = None) -> TokenizedText:
        """Tokenize `text` into start/end delimited tokens and their ids.

        When `min_length` is given the sequence is right-padded with the pad
        token up to that length, or truncated from the end down to it (never
        below the start and end pair) with `truncated=True`.
        Unknown token strings map to the unknown id; this never raises.
        """

        tokens = [self.special_tokens.start]
        tokens.extend(self.encode(text))
        tokens.append(self.special_tokens.end)

        truncated = False
        if min_length is not None:
            if len(tokens) < min_length:
                tokens.extend([self.special_tokens.pad] * (min_length - len(tokens)))
            limit = max(min_length, 2)
            if len(tokens) > limit:
                tokens = tokens[:limit]
                truncated = True
                logger.debug(
                    "Truncated input %r to %r", text, self.decode(tokens)
                )

        ids = tuple(self._vocabulary.get(token, self.unknown_token_id) for token in tokens)
        return TokenizedText(tokens=tuple(tokens), ids=ids, truncated=truncated)

    def encode(self, text: str) -> list[str]:
        """BPE tokens of every word of the normalized text, without markers."""

        normalized = normalize_text(text)
        if not normalized:
            return []
        tokens: list[str] = []
        for word in normalized.split(" "):
            tokens.extend(self.encode_word(word))
        return tokens

    def encode_word(self, word: str) -> list[str]:
        tokens = list(word)
        if not tokens:
            return []
        tokens[-1] += self.special_tokens.end_of_word

        while len(tokens) > 1:
            candidates = [pair for pair in set(zip(tokens, tokens[1:])) if pair in self._merges]
            if not candidates:
                break
            best = min(candidates, key=lambda pair: (self._merges[pair], pair))
            tokens = _merge_pair(tokens, best)
        return tokens

    def decode(self, tokens: Iterable[str]) -> str:
        """Lossy inverse of `tokenize`, for diagnostics only."""

        special = self.special_tokens
        text = "".join(tokens).replace(special.end_of_word, " ")
        for marker in (special.start, special.end, special.pad):
            text = text.replace(marker, "")
        return text.strip()

    def decode_ids(self, ids: Sequence[int]) -> str:
        return self.decode(self._inverse.get(token_id, "") for token_id in ids)

    def token_id(self, token: str) -> int | None:
        return self._vocabulary.get(token)

    def token(self, token_id: int) -> str | None:
        return self._inverse.get(token_id)


def _merge_pair(tokens: list[str], pair: TokenPair) -> list[str]:
    """Replace each left-to-right, non-overlapping occurrence of `pair`."""

    first, second = pair
    merged: list[str] = []
    index = 0
    while index < len(tokens):
        if (
            index < len(tokens) - 1
            and tokens[index] == first
            and tokens[index + 1] == second
        ):
            merged.append(first + second)
            index += 2
        else:
            merged.append(tokens[index])
            index += 1
    return merged
