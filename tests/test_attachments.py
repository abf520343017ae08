"""Tests for attachment rendering through the datasource seam."""

import unittest

from notes_wire import gallery_blob, run, table_blob

from applenotes.domain import AnomalyKind, AttachmentRef, AttributeRun, TextContent
from applenotes.rendering.attachments import AttachmentContext, handwriting_callout
from applenotes.rendering.memory_datasource import InMemoryDataSource
from applenotes.rendering.options import ConvertOptions
from applenotes.rendering.renderer import render_text

OBJ = "\ufffc"


def _with_attachment(ref, before="", after=""):
    runs = []
    if before:
        runs.append(AttributeRun(before))
    runs.append(AttributeRun(OBJ, attachment=ref))
    if after:
        runs.append(AttributeRun(after))
    return TextContent(text="".join(r.text for r in runs), runs=tuple(runs))


class AttachmentRenderTest(unittest.TestCase):
    def setUp(self):
        self.ds = InMemoryDataSource()

    def render(self, ref, options=None, **kwargs):
        ctx = AttachmentContext(datasource=self.ds, options=options or ConvertOptions())
        return render_text(_with_attachment(ref, **kwargs), ctx), ctx

    def test_media_embed(self):
        self.ds.add_attachment("IMG", uti="public.jpeg", path="attachments/img.jpg")
        out, ctx = self.render(AttachmentRef.from_uti("IMG", "public.jpeg"))
        self.assertEqual(out, "![[attachments/img.jpg]]")
        self.assertEqual([f.path for f in ctx.files], ["attachments/img.jpg"])
        self.assertEqual(ctx.anomalies, [])

    def test_media_embed_without_wiki_links(self):
        self.ds.add_attachment("IMG", path="attachments/my img.jpg")
        out, _ = self.render(AttachmentRef("IMG"), ConvertOptions(wiki_links=False))
        self.assertEqual(out, "![](<attachments/my img.jpg>)")

    def test_missing_file_placeholder(self):
        out, ctx = self.render(AttachmentRef("GONE"), before="See ")
        self.assertEqual(out, "See **Missing attachment: GONE**")
        self.assertEqual([a.kind for a in ctx.anomalies], [AnomalyKind.MISSING_ATTACHMENT])
        self.assertEqual(ctx.anomalies[0].identifier, "GONE")

    def test_uti_resolved_through_datasource(self):
        self.ds.add_attachment(
            "U1", uti="public.url", url="https://example.com", title="Example"
        )
        out, _ = self.render(AttachmentRef("U1"))
        self.assertEqual(out, "[**Example**](https://example.com)")

    def test_url_without_title(self):
        self.ds.add_attachment("U1", uti="public.url", url="https://example.com")
        out, _ = self.render(AttachmentRef("U1"))
        self.assertEqual(out, "[https://example.com](https://example.com)")

    def test_hashtag_and_mention(self):
        self.ds.add_attachment("H", inline_text="#ideas")
        self.ds.add_attachment("M", inline_text="@Sam")
        out, _ = self.render(
            AttachmentRef.from_uti("H", "com.apple.notes.inlinetextattachment.hashtag"),
            after=" later",
        )
        self.assertEqual(out, "#ideas later")
        out, _ = self.render(
            AttachmentRef.from_uti("M", "com.apple.notes.inlinetextattachment.mention")
        )
        self.assertEqual(out, "@Sam")

    def test_internal_link(self):
        uri = "applenotes:note/ABC"
        self.ds.add_attachment("L", url=uri, inline_text="Groceries")
        ref = AttachmentRef.from_uti("L", "com.apple.notes.inlinetextattachment.link")
        out, _ = self.render(ref)
        self.assertEqual(out, f"[Groceries]({uri})")
        self.ds.add_note_link(uri, "Lists/Groceries.md")
        out, _ = self.render(ref)
        self.assertEqual(out, "[[Lists/Groceries]]")

    def test_inline_table(self):
        blob = table_blob({"r": 0}, {"c": 0, "d": 1}, [("r", "c", "A"), ("r", "d", "B")])
        self.ds.add_attachment("T1", uti="com.apple.notes.table", mergeable_gz=blob)
        out, ctx = self.render(
            AttachmentRef.from_uti("T1", "com.apple.notes.table"),
            before="Before\n",
            after="\nAfter",
        )
        self.assertEqual(out, "Before\n\n| A | B |\n| -- | -- |\n\nAfter")
        self.assertEqual(ctx.anomalies, [])

    def test_table_embedding_itself(self):
        uti = "com.apple.notes.table"
        cell = ("r", "c", "in" + OBJ, [run(2), run(1, attachment="T1", uti=uti)])
        self.ds.add_attachment("T1", uti=uti, mergeable_gz=table_blob({"r": 0}, {"c": 0}, [cell]))
        out, ctx = self.render(AttachmentRef.from_uti("T1", uti))
        self.assertIn("| in**Missing attachment: T1** |", out)
        self.assertEqual([a.kind for a in ctx.anomalies], [AnomalyKind.MISSING_ATTACHMENT])
        self.assertEqual(ctx.anomalies[0].identifier, "T1")
        self.assertEqual(ctx.active, set())

    def test_tables_embedding_each_other(self):
        uti = "com.apple.notes.table"
        for ident, other in (("T1", "T2"), ("T2", "T1")):
            cell = ("r", "c", OBJ, [run(1, attachment=other, uti=uti)])
            self.ds.add_attachment(ident, uti=uti, mergeable_gz=table_blob({"r": 0}, {"c": 0}, [cell]))
        out, ctx = self.render(AttachmentRef.from_uti("T1", uti))
        self.assertIn("**Missing attachment: T1**", out)
        self.assertEqual([a.identifier for a in ctx.anomalies], ["T1"])

    def test_inline_table_without_data(self):
        out, ctx = self.render(AttachmentRef.from_uti("T1", "com.apple.notes.table"))
        self.assertEqual(out, "**Missing attachment: T1**")
        self.assertEqual(len(ctx.anomalies), 1)

    def test_scan_gallery(self):
        self.ds.add_attachment("G", mergeable_gz=gallery_blob(["P1", "P2"]))
        self.ds.add_attachment("P1", path="scan1.jpg")
        self.ds.add_attachment("P2", path="scan2.jpg")
        out, ctx = self.render(AttachmentRef.from_uti("G", "com.apple.notes.gallery"))
        self.assertEqual(out, "![[scan1.jpg]]\n![[scan2.jpg]]")
        self.assertEqual(len(ctx.files), 2)

    def test_drawing_handwriting_callout(self):
        self.ds.add_attachment("D", path="drawing.png", handwriting_summary="hello")
        ref = AttachmentRef.from_uti("D", "com.apple.drawing.2")
        out, _ = self.render(ref)
        self.assertEqual(out, "![[drawing.png]]")
        out, _ = self.render(ref, ConvertOptions(include_handwriting=True))
        self.assertEqual(out, "\n> [!Handwriting]-\n> hello\n\n![[drawing.png]]")

    def test_missing_identifier(self):
        out, ctx = self.render(AttachmentRef(""))
        self.assertEqual(out, "**Missing attachment: ?**")
        self.assertIsNone(ctx.anomalies[0].identifier)

    def test_no_datasource(self):
        ctx = AttachmentContext()
        out = render_text(_with_attachment(AttachmentRef("X")), ctx)
        self.assertEqual(out, "**Missing attachment: X**")


class HandwritingCalloutTest(unittest.TestCase):
    def test_each_line_quoted(self):
        self.assertEqual(
            handwriting_callout("one\n\ntwo"), "> [!Handwriting]-\n> one\n>\n> two\n"
        )


if __name__ == "__main__":
    unittest.main()
