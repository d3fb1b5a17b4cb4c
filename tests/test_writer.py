import io
import json
import os
import tempfile
import unittest
from unittest.mock import MagicMock

from errors import ParseError, WriteError
from models import OutputDocument
from tests.helpers import make_post
from writer import ResultWriter, WriteMode


class ResultWriterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "output.json")
        self.writer = ResultWriter()

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def _ids(self):
        with open(self.path, encoding="utf-8") as f:
            return [item["id"] for item in json.load(f)]

    def _seed(self, *ids):
        self.writer.write([make_post(post_id) for post_id in ids], self.path, WriteMode.OVERWRITE)

    def test_creates_new_document(self):
        count = self.writer.write([make_post("a"), make_post("b")], self.path, WriteMode.APPEND)

        self.assertEqual(count, 2)
        self.assertEqual(self._ids(), ["a", "b"])

    def test_append_merges_without_duplicates(self):
        self._seed("b", "c")

        count = self.writer.write([make_post("a"), make_post("b")], self.path, WriteMode.APPEND)

        self.assertEqual(count, 3)
        self.assertEqual(self._ids(), ["b", "c", "a"])

    def test_append_result_is_superset_of_existing(self):
        self._seed("x", "y")
        before = set(self._ids())

        self.writer.write([make_post("y"), make_post("z")], self.path, WriteMode.APPEND)

        after = self._ids()
        self.assertTrue(before.issubset(after))
        self.assertEqual(len(after), len(set(after)))

    def test_overwrite_discards_existing_posts(self):
        self._seed("b", "c")

        self.writer.write([make_post("a"), make_post("b")], self.path, WriteMode.OVERWRITE)

        self.assertEqual(self._ids(), ["a", "b"])

    def test_malformed_append_target_is_left_untouched(self):
        for contents in ['"not json"', 'not json', '{"posts": []}', '[{"text": "no id"}]']:
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(contents)

            with self.assertRaises(ParseError):
                self.writer.write([make_post("a")], self.path, WriteMode.APPEND)

            with open(self.path, encoding="utf-8") as f:
                self.assertEqual(f.read(), contents)

    def test_undecodable_append_target_is_left_untouched(self):
        contents = b"\xff\xfe[garbage"
        with open(self.path, "wb") as f:
            f.write(contents)

        with self.assertRaises(ParseError):
            self.writer.write([make_post("a")], self.path, WriteMode.APPEND)

        with open(self.path, "rb") as f:
            self.assertEqual(f.read(), contents)

    def test_overwrite_replaces_malformed_file(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("not json")

        self.writer.write([make_post("a")], self.path, WriteMode.OVERWRITE)

        self.assertEqual(self._ids(), ["a"])

    def test_blank_append_target_starts_new_document(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("\n")

        self.writer.write([make_post("a")], self.path, WriteMode.APPEND)

        self.assertEqual(self._ids(), ["a"])

    def test_no_temporary_files_are_left_behind(self):
        self._seed("a")
        self.writer.write([make_post("b")], self.path, WriteMode.APPEND)

        self.assertEqual(os.listdir(self.tmpdir.name), ["output.json"])

    def test_missing_directory_is_a_write_error(self):
        path = os.path.join(self.tmpdir.name, "missing", "output.json")

        with self.assertRaises(WriteError):
            self.writer.write([make_post("a")], path, WriteMode.OVERWRITE)

    def test_stdout_sink(self):
        stream = io.StringIO()
        writer = ResultWriter(stdout=stream)

        count = writer.write([make_post("a"), make_post("a")], "/dev/stdout", WriteMode.APPEND)

        self.assertEqual(count, 1)
        payload = json.loads(stream.getvalue())
        self.assertEqual([item["id"] for item in payload], ["a"])
        self.assertEqual(payload[0]["url"], "https://twitter.com/sunny/status/a")

    def test_broken_stdout_is_a_write_error(self):
        stream = MagicMock()
        stream.write.side_effect = BrokenPipeError(32, "Broken pipe")
        writer = ResultWriter(stdout=stream)

        with self.assertRaises(WriteError):
            writer.write([make_post("a")], "-", WriteMode.APPEND)

    def test_load_round_trip(self):
        self._seed("a", "b")

        document = self.writer.load(self.path)

        self.assertIsInstance(document, OutputDocument)
        self.assertEqual(document.posts, [make_post("a"), make_post("b")])


if __name__ == "__main__":
    unittest.main()
