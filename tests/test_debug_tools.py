"""Tests for the attribute run debug helpers."""

import unittest

from notes_wire import note_blob, run

from applenotes.builder import build
from applenotes.decoding import decode
from applenotes.protobuf import NOTE_ROOT, default_schema
from applenotes.rendering.debug_tools import dump_runs_text, map_attribute_runs, map_merged_runs


class DebugToolsTest(unittest.TestCase):
    def setUp(self):
        tree = decode(
            note_blob("Title\nBody", [run(6, style_type=0), run(4)]), default_schema(), NOTE_ROOT
        )
        self.note = tree.message("document").message("note")
        self.content = build(tree).content

    def test_map_attribute_runs(self):
        rows = map_attribute_runs(self.note)
        self.assertEqual([r["text"] for r in rows], ["Title\n", "Body"])
        self.assertEqual([r["utf16_start"] for r in rows], [0, 6])
        self.assertEqual(rows[0]["style_type"], 0)
        self.assertIsNone(rows[1]["style_type"])

    def test_inconsistent_runs_do_not_raise(self):
        tree = decode(note_blob("Hi", [run(5)]), default_schema(), NOTE_ROOT)
        rows = map_attribute_runs(tree.message("document").message("note"))
        self.assertEqual(rows[0]["text"], "Hi")

    def test_dump_marks_line_breaks(self):
        dump = dump_runs_text(self.note)
        self.assertIn("style=TITLE", dump)
        self.assertIn("⏎", dump)

    def test_map_merged_runs(self):
        rows = map_merged_runs(self.content)
        self.assertEqual([r["text"] for r in rows], ["Title", "\n", "Body"])
        self.assertTrue(rows[1]["line_break"])


if __name__ == "__main__":
    unittest.main()
