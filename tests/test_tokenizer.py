from __future__ import annotations

import unittest

from photo_search import LoadError, SpecialTokens, Tokenizer, normalize_text

from tests.search_test_helpers import (
    END,
    PAD,
    START,
    build_merges,
    build_tokenizer,
    build_vocabulary,
)


class NormalizeTextTests(unittest.TestCase):
    def test_trims_lowercases_and_collapses_whitespace(self) -> None:
        self.assertEqual(normalize_text("  Gray\t\n  COUCH  "), "gray couch")
        self.assertEqual(normalize_text(" \n\t "), "")


class TokenizerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tokenizer = build_tokenizer()
        self.vocabulary = build_vocabulary()

    def test_tokenize_applies_merges_per_word(self) -> None:
        result = self.tokenizer.tokenize("gray couch")

        self.assertEqual(result.tokens, (START, "gray</w>", "couch</w>", END))
        self.assertEqual(
            result.ids,
            tuple(self.vocabulary[token] for token in result.tokens),
        )
        self.assertFalse(result.truncated)

    def test_tokenize_is_deterministic(self) -> None:
        first = self.tokenizer.tokenize("Gray couch by the window", min_length=16)
        second = self.tokenizer.tokenize("Gray couch by the window", min_length=16)

        self.assertEqual(first, second)

    def test_normalization_does_not_change_tokens(self) -> None:
        self.assertEqual(
            self.tokenizer.tokenize("  GRAY \t\n couch ").tokens,
            self.tokenizer.tokenize("gray couch").tokens,
        )

    def test_empty_input_yields_start_and_end(self) -> None:
        self.assertEqual(self.tokenizer.tokenize("").tokens, (START, END))
        self.assertEqual(self.tokenizer.tokenize("   ").ids, (0, 1))

    def test_min_length_pads_with_pad_tokens_only(self) -> None:
        result = self.tokenizer.tokenize("", min_length=5)

        self.assertEqual(result.tokens, (START, END, PAD, PAD, PAD))
        self.assertEqual(result.ids, (0, 1, 2, 2, 2))
        self.assertFalse(result.truncated)

    def test_min_length_below_two_never_truncates_empty_input(self) -> None:
        for min_length in (0, 1, 2):
            result = self.tokenizer.tokenize("", min_length=min_length)
            self.assertEqual(result.tokens, (START, END))
            self.assertFalse(result.truncated)

    def test_long_input_is_truncated_from_the_end(self) -> None:
        result = self.tokenizer.tokenize("a b c d", min_length=4)

        self.assertEqual(result.tokens, (START, "a</w>", "b</w>", "c</w>"))
        self.assertEqual(len(result.ids), 4)
        self.assertTrue(result.truncated)

    def test_truncation_keeps_at_least_two_tokens(self) -> None:
        result = self.tokenizer.tokenize("a b c", min_length=1)

        self.assertEqual(result.tokens, (START, "a</w>"))
        self.assertTrue(result.truncated)

    def test_unknown_tokens_map_to_unknown_id(self) -> None:
        result = self.tokenizer.tokenize("sofa!")

        self.assertEqual(result.tokens, (START, "s", "o", "f", "a", "!</w>", END))
        self.assertEqual(result.ids[-2], self.tokenizer.unknown_token_id)
        self.assertEqual(self.tokenizer.unknown_token_id, 3)

    def test_word_without_applicable_merge_is_split_into_characters(self) -> None:
        self.assertEqual(self.tokenizer.encode_word("xyz"), ["x", "y", "z</w>"])
        self.assertEqual(self.tokenizer.encode_word("q"), ["q</w>"])

    def test_lower_rank_merge_applies_first(self) -> None:
        vocabulary = build_vocabulary(extra=["ab", "abc</w>", "bc</w>"])

        both = Tokenizer(vocabulary, {("a", "b"): 0, ("ab", "c</w>"): 1})
        only_first = Tokenizer(vocabulary, {("a", "b"): 0})
        reversed_priority = Tokenizer(vocabulary, {("b", "c</w>"): 0, ("a", "b"): 1})

        self.assertEqual(only_first.encode_word("abc"), ["ab", "c</w>"])
        self.assertEqual(both.encode_word("abc"), ["abc</w>"])
        self.assertEqual(reversed_priority.encode_word("abc"), ["a", "bc</w>"])

    def test_merge_never_reuses_a_token_within_one_pass(self) -> None:
        tokenizer = Tokenizer(build_vocabulary(extra=["aa"]), {("a", "a"): 0})

        self.assertEqual(tokenizer.encode_word("aaaaa"), ["aa", "aa", "a</w>"])
        self.assertEqual(tokenizer.encode_word("aaa"), ["aa", "a</w>"])

    def test_decode_strips_markers(self) -> None:
        tokens = self.tokenizer.tokenize("gray couch", min_length=8).tokens

        self.assertEqual(self.tokenizer.decode(tokens), "gray couch")
        self.assertEqual(
            self.tokenizer.decode_ids(self.tokenizer.tokenize("gray").ids),
            "gray",
        )

    def test_token_lookups(self) -> None:
        gray_id = self.vocabulary["gray</w>"]

        self.assertEqual(self.tokenizer.token_id("gray</w>"), gray_id)
        self.assertIsNone(self.tokenizer.token_id("missing"))
        self.assertEqual(self.tokenizer.token(gray_id), "gray</w>")
        self.assertIsNone(self.tokenizer.token(10_000))
        self.assertEqual(self.tokenizer.vocabulary_size, len(self.vocabulary))

    def test_tables_are_read_only(self) -> None:
        with self.assertRaises(TypeError):
            self.tokenizer.vocabulary["new"] = 1  # type: ignore[index]
        with self.assertRaises(TypeError):
            self.tokenizer.merges[("x", "y")] = 0  # type: ignore[index]

    def test_vocabulary_must_contain_reserved_tokens(self) -> None:
        vocabulary = build_vocabulary()
        del vocabulary[PAD]

        with self.assertRaisesRegex(LoadError, "reserved tokens"):
            Tokenizer(vocabulary, build_merges())

    def test_custom_special_tokens(self) -> None:
        special = SpecialTokens(start="<s>", end="</s>", pad="<pad>", unknown="<unk>")
        vocabulary = {"<s>": 0, "</s>": 1, "<pad>": 2, "<unk>": 3, "a</w>": 4}
        tokenizer = Tokenizer(vocabulary, {}, special_tokens=special)

        result = tokenizer.tokenize("a b", min_length=6)

        self.assertEqual(result.tokens, ("<s>", "a</w>", "b</w>", "</s>", "<pad>", "<pad>"))
        self.assertEqual(result.ids, (0, 4, 3, 1, 2, 2))


if __name__ == "__main__":
    unittest.main()
