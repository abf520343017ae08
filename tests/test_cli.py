"""Tests for the developer CLI."""

import os
import tempfile
import unittest

from notes_wire import note_blob, run, table_blob
from typer.testing import CliRunner

from applenotes.cli.main import app


class CliTest(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def _write(self, name, data):
        path = os.path.join(self.tmp.name, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def test_convert(self):
        path = self._write("note.bin", note_blob("Hello world", [run(6), run(5, weight=1)]))
        result = self.runner.invoke(app, ["convert", path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Hello **world**", result.output)

    def test_convert_table_lists_anomalies(self):
        path = self._write("table.bin", table_blob({"r": 0}, {"c": 0}, [("r", "ghost", "v")]))
        result = self.runner.invoke(app, ["convert", path, "--root", "MergableDataProto"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("dangling", result.output)

    def test_decode_and_runs(self):
        path = self._write("note.bin", note_blob("Hi", [run(2, weight=1)]))
        result = self.runner.invoke(app, ["decode", path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"note_text": "Hi"', result.output)
        result = self.runner.invoke(app, ["runs", path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("len=2", result.output)

    def test_structure(self):
        path = self._write("note.bin", note_blob("Hi", [run(2)]))
        result = self.runner.invoke(app, ["structure", path])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Kind: text", result.output)

    def test_corrupt_blob_exits_nonzero(self):
        path = self._write("bad.bin", b"\x00garbage")
        result = self.runner.invoke(app, ["convert", path])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error", result.output)


if __name__ == "__main__":
    unittest.main()
