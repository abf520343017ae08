"""Tests for mapping decoded trees onto typed note documents."""

import unittest

from notes_wire import gallery_blob, note_blob, run, table_blob, uuid_for, utf16_len

from applenotes.builder import build, color_to_hex
from applenotes.decoding import decode
from applenotes.domain import (
    AttachmentKind,
    ContentKind,
    ParagraphStyle,
    StyleSet,
    StyleType,
)
from applenotes.exceptions import MalformedNoteError
from applenotes.protobuf import MERGEABLE_ROOT, NOTE_ROOT, default_schema


def _build_note(text, runs):
    return build(decode(note_blob(text, runs), default_schema(), NOTE_ROOT))


def _build_mergeable(blob):
    return build(decode(blob, default_schema(), MERGEABLE_ROOT))


class TextBuildTest(unittest.TestCase):
    def test_runs_slice_text(self):
        doc = _build_note("Hello world", [run(6), run(5, weight=1)])
        self.assertEqual(doc.kind, ContentKind.TEXT)
        self.assertEqual([r.text for r in doc.runs], ["Hello ", "world"])
        self.assertEqual(doc.runs[0].style, StyleSet())
        self.assertEqual(doc.runs[1].style, StyleSet(bold=True))

    def test_lengths_are_utf16_units(self):
        text = "a😀b"
        self.assertEqual(utf16_len(text), 4)
        doc = _build_note(text, [run(1), run(2, weight=2), run(1)])
        self.assertEqual([r.text for r in doc.runs], ["a", "😀", "b"])
        self.assertTrue(doc.runs[1].style.italic)

    def test_split_surrogate_pair_is_malformed(self):
        with self.assertRaises(MalformedNoteError):
            _build_note("a😀", [run(2), run(1)])

    def test_run_length_sum_mismatch_is_malformed(self):
        with self.assertRaises(MalformedNoteError):
            _build_note("Hello", [run(3)])
        with self.assertRaises(MalformedNoteError):
            _build_note("Hello", [run(3), run(4)])

    def test_style_mapping(self):
        doc = _build_note(
            "abcdef",
            [
                run(1, weight=3),
                run(1, underline=True, strike=True),
                run(1, superscript=1),
                run(1, superscript=-1),
                run(1, color=(1.0, 0.5, 0.0)),
                run(1, point_size=18.0, link="https://example.com"),
            ],
        )
        styles = [r.style for r in doc.runs]
        self.assertEqual(styles[0], StyleSet(bold=True, italic=True))
        self.assertEqual(styles[1], StyleSet(underline=True, strikethrough=True))
        self.assertEqual(styles[2].superscript, 1)
        self.assertEqual(styles[3].superscript, -1)
        self.assertEqual(styles[4].color, "#FF8000")
        self.assertEqual(styles[5].font_size, 18.0)
        self.assertEqual(styles[5].link, "https://example.com")

    def test_paragraph_mapping(self):
        doc = _build_note(
            "abcd",
            [
                run(1),
                run(1, style_type=0),
                run(1, style_type=103, checked=True, indent=2),
                run(1, style_type=102, start=4, quote=True),
            ],
        )
        paras = [r.paragraph for r in doc.runs]
        self.assertEqual(paras[0], ParagraphStyle())
        self.assertEqual(paras[0].style_type, StyleType.DEFAULT)
        self.assertEqual(paras[1].style_type, StyleType.TITLE)
        self.assertEqual(paras[2], ParagraphStyle(StyleType.CHECKBOX, indent=2, checked=True))
        self.assertEqual(paras[3].start_number, 4)
        self.assertTrue(paras[3].block_quote)

    def test_attachment_runs(self):
        doc = _build_note(
            "x\ufffc\ufffc",
            [
                run(1),
                run(1, attachment="T1", uti="com.apple.notes.table"),
                run(1, attachment="IMG"),
            ],
        )
        refs = doc.attachments
        self.assertEqual([r.identifier for r in refs], ["T1", "IMG"])
        self.assertEqual(refs[0].kind, AttachmentKind.TABLE)
        self.assertIsNone(refs[1].uti)
        self.assertEqual(refs[1].kind, AttachmentKind.MEDIA)

    def test_color_to_hex_clamps(self):
        self.assertEqual(color_to_hex(1.2, -0.1, 0.5), "#FF0080")

    def test_color_to_hex_non_finite_channels(self):
        nan, inf = float("nan"), float("inf")
        self.assertEqual(color_to_hex(nan, inf, -inf), "#000000")
        self.assertEqual(color_to_hex(1.0, nan, 1.0), "#FF00FF")

    def test_non_finite_floats_from_the_wire(self):
        nan, inf = float("nan"), float("inf")
        doc = _build_note(
            "ab",
            [run(1, color=(nan, 1.0, 0.0)), run(1, color=(inf, 0.0, 0.0), point_size=nan)],
        )
        self.assertEqual(doc.runs[0].style.color, "#00FF00")
        self.assertEqual(doc.runs[1].style.color, "#000000")
        self.assertIsNone(doc.runs[1].style.font_size)


class MergeableBuildTest(unittest.TestCase):
    def test_table_axes_and_cells(self):
        doc = _build_mergeable(
            table_blob(
                rows={"r10": 10, "r2": 2},
                columns={"c5": 5, "c1": 1, "c3": 3},
                cells=[("r2", "c1", "X"), ("r10", "c5", "Y")],
            )
        )
        self.assertEqual(doc.kind, ContentKind.TABLE)
        table = doc.content
        self.assertEqual(
            {(i.identifier, i.order) for i in table.columns},
            {(uuid_for("c5").hex(), 5), (uuid_for("c1").hex(), 1), (uuid_for("c3").hex(), 3)},
        )
        self.assertEqual(sorted(i.order for i in table.rows), [2, 10])
        cells = {(c.row_id, c.column_id): c.content.text for c in table.cells}
        self.assertEqual(
            cells,
            {
                (uuid_for("r2").hex(), uuid_for("c1").hex()): "X",
                (uuid_for("r10").hex(), uuid_for("c5").hex()): "Y",
            },
        )

    def test_table_detected_by_keys_without_type(self):
        doc = _build_mergeable(
            table_blob({"r": 0}, {"c": 0}, [("r", "c", "v")], type_name="com.example.Other")
        )
        self.assertEqual(doc.kind, ContentKind.TABLE)

    def test_dangling_identity_keeps_unmatched_id(self):
        doc = _build_mergeable(table_blob({"r": 0}, {"c": 0}, [("r", "ghost", "v")]))
        (cell,) = doc.content.cells
        self.assertEqual(cell.column_id, "uuid#99")

    def test_contents_remap_takes_key_order(self):
        doc = _build_mergeable(
            table_blob(
                rows={"r": 0},
                columns={"c1": 1, "c2": 2},
                cells=[("r", "c1b", "X")],
                column_aliases={"c1b": "c1"},
            )
        )
        orders = {i.identifier: i.order for i in doc.content.columns}
        self.assertEqual(
            orders,
            {uuid_for("c1").hex(): 1, uuid_for("c2").hex(): 2, uuid_for("c1b").hex(): 1},
        )
        (cell,) = doc.content.cells
        self.assertEqual(cell.column_id, uuid_for("c1b").hex())

    def test_remap_to_unknown_key_is_ignored(self):
        doc = _build_mergeable(
            table_blob({"r": 0}, {"c": 0}, [("r", "c", "v")], column_aliases={"x": "nowhere"})
        )
        self.assertEqual([i.identifier for i in doc.content.columns], [uuid_for("c").hex()])

    def test_missing_ordering_index_uses_array_position(self):
        doc = _build_mergeable(
            table_blob({"a": 50, "b": 7}, {"c": 3}, [("a", "c", "v")], positional=True)
        )
        self.assertEqual(
            {(i.identifier, i.order) for i in doc.content.rows},
            {(uuid_for("a").hex(), 0), (uuid_for("b").hex(), 1)},
        )
        self.assertEqual([i.order for i in doc.content.columns], [0])

    def test_scan_gallery(self):
        doc = _build_mergeable(gallery_blob(["P1", "P2"]))
        self.assertEqual(doc.kind, ContentKind.SCAN)
        self.assertEqual([a.identifier for a in doc.attachments], ["P1", "P2"])
        self.assertTrue(all(a.kind is AttachmentKind.MODIFIED_SCAN for a in doc.attachments))

    def test_empty_mergeable_is_malformed(self):
        with self.assertRaises(MalformedNoteError):
            _build_mergeable(gallery_blob([]))


if __name__ == "__main__":
    unittest.main()
