"""Tokenize free text with a small in-script BPE vocabulary."""

from __future__ import annotations

import sys
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "photo_search").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from photo_search import Tokenizer


def build_tokenizer() -> Tokenizer:
    tokens = ["<|startoftext|>", "<|endoftext|>", "[PAD]", "[UNK]"]
    tokens += list("abcdefghijklmnopqrstuvwxyz")
    tokens += [f"{char}</w>" for char in "abcdefghijklmnopqrstuvwxyz"]
    tokens += ["so", "sof", "sofa</w>", "re", "red</w>"]
    vocabulary = {token: index for index, token in enumerate(tokens)}
    merges = {("s", "o"): 0, ("so", "f"): 1, ("sof", "a</w>"): 2, ("r", "e"): 3, ("re", "d</w>"): 4}
    return Tokenizer(vocabulary, merges)


def main() -> None:
    tokenizer = build_tokenizer()

    # Normalization, merges, start/end markers and padding.
    result = tokenizer.tokenize("  Red   SOFA ", min_length=8)
    print("Tokens:", result.tokens)
    print("Ids:", result.ids)
    print("Decoded:", tokenizer.decode(result.tokens))

    # Unknown characters map to the [UNK] id.
    print("Unknown:", tokenizer.tokenize("sofa?").ids)

    # Long input is truncated to `min_length` tokens.
    long_query = tokenizer.tokenize("red sofa red sofa red sofa", min_length=5)
    print("Truncated:", long_query.truncated, long_query.tokens)


if __name__ == "__main__":
    main()
