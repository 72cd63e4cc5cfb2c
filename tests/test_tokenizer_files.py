from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from photo_search import LoadError, Tokenizer, read_merges, read_vocabulary

from tests.search_test_helpers import START, build_vocabulary


class TokenizerFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.root = Path(self._tmp.name)

    def _write(self, name: str, content: str) -> Path:
        path = self.root / name
        path.write_text(content, encoding="utf-8")
        return path

    def test_read_merges_skips_comments_and_blank_lines(self) -> None:
        path = self._write("merges.txt", "#version: 0.2\ng r\n\ngr a\n#note\ngra y</w>\n")

        merges = read_merges(path)

        self.assertEqual(
            merges,
            {("g", "r"): 0, ("gr", "a"): 1, ("gra", "y</w>"): 2},
        )

    def test_read_merges_keeps_first_rank_for_duplicates(self) -> None:
        path = self._write("merges.txt", "a b\nc d\na b\n")

        self.assertEqual(read_merges(path), {("a", "b"): 0, ("c", "d"): 1})

    def test_malformed_merge_line_is_fatal(self) -> None:
        path = self._write("merges.txt", "#version\ng r\ng r x\n")

        with self.assertRaises(LoadError) as ctx:
            read_merges(path)

        self.assertEqual(ctx.exception.line, 3)
        self.assertIn("line 3", str(ctx.exception))

    def test_single_token_merge_line_is_fatal(self) -> None:
        path = self._write("merges.txt", "lonely\n")

        with self.assertRaises(LoadError):
            read_merges(path)

    def test_read_vocabulary(self) -> None:
        path = self._write("vocab.json", json.dumps({"a": 0, "b</w>": 1}))

        self.assertEqual(read_vocabulary(path), {"a": 0, "b</w>": 1})

    def test_vocabulary_errors_are_load_errors(self) -> None:
        cases = {
            "invalid.json": "{not json",
            "list.json": json.dumps(["a", "b"]),
            "negative.json": json.dumps({"a": -1}),
            "float.json": json.dumps({"a": 1.5}),
            "bool.json": json.dumps({"a": True}),
        }
        for name, content in cases.items():
            with self.subTest(name=name):
                with self.assertRaises(LoadError):
                    read_vocabulary(self._write(name, content))

        with self.assertRaises(LoadError):
            read_vocabulary(self.root / "missing.json")
        with self.assertRaises(LoadError):
            read_merges(self.root / "missing.txt")

    def test_non_utf8_files_raise_load_error(self) -> None:
        vocab_path = self.root / "vocab.json"
        vocab_path.write_bytes(b'{"\xff\xfe": 1}')
        merges_path = self.root / "merges.txt"
        merges_path.write_bytes(b"g r\n\xff \xfe\n")

        with self.assertRaises(LoadError) as ctx:
            read_vocabulary(vocab_path)
        self.assertEqual(ctx.exception.path, str(vocab_path))
        with self.assertRaises(LoadError):
            read_merges(merges_path)

    def test_tokenizer_from_files(self) -> None:
        vocab_path = self._write("vocab.json", json.dumps(build_vocabulary()))
        merges_path = self._write("merges.txt", "#version: 0.2\ng r\ngr a\ngra y</w>\n")

        tokenizer = Tokenizer.from_files(vocab_path, merges_path)
        result = tokenizer.tokenize("Gray", min_length=4)

        self.assertEqual(result.tokens[:3], (START, "gray</w>", "<|endoftext|>"))
        self.assertEqual(len(result.ids), 4)


if __name__ == "__main__":
    unittest.main()
