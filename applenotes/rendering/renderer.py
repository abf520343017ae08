"""
Pure Markdown renderer for the text content of a note. No I/O.

Fragments from the run merger are translated inline; block structure
(headings, lists, checklists, quotes, code fences) is emitted at line
starts from the paragraph style of the line's first fragment.
"""

from __future__ import annotations

from typing import Dict, List

from ..domain import Fragment, ParagraphStyle, StyleType, TextContent
from .attachments import AttachmentContext, render_attachment
from .markup import translate
from .merger import merge_runs

CODE_FENCE = "```"

_HEADING_PREFIX = {
    StyleType.TITLE: "# ",
    StyleType.HEADING: "## ",
    StyleType.SUBHEADING: "### ",
}


def _drop_first_line(fragments: List[Fragment]) -> List[Fragment]:
    for idx, frag in enumerate(fragments):
        if frag.is_line_break and frag.text == "\n":
            return fragments[idx + 1 :]
    return []


class _BlockLayout:
    def __init__(self, ctx: AttachmentContext) -> None:
        self.ctx = ctx
        self.parts: List[str] = []
        self.at_line_start = True
        self.soft_break = False
        self.in_code = False
        # Numbered-list counters per indent level
        self.counters: Dict[int, int] = {}

    def _fence(self, paragraph: ParagraphStyle) -> None:
        if paragraph.is_monospaced and not self.in_code:
            self.parts.append(CODE_FENCE + "\n")
            self.in_code = True
        elif not paragraph.is_monospaced and self.in_code:
            self.parts.append(CODE_FENCE + "\n")
            self.in_code = False

    def _number(self, paragraph: ParagraphStyle) -> int:
        level = paragraph.indent
        for deeper in [k for k in self.counters if k > level]:
            del self.counters[deeper]
        if level in self.counters:
            self.counters[level] += 1
        else:
            self.counters[level] = paragraph.start_number or 1
        return self.counters[level]

    def _prefix(self, paragraph: ParagraphStyle) -> str:
        if self.in_code:
            return ""
        quote = "> " if paragraph.block_quote else ""
        if self.soft_break:
            return quote
        st = paragraph.style_type
        if st is not StyleType.NUMBERED_LIST:
            if st.is_list:
                for level in [k for k in self.counters if k >= paragraph.indent]:
                    del self.counters[level]
            else:
                self.counters.clear()
        if st in _HEADING_PREFIX:
            return quote + _HEADING_PREFIX[st]
        if not st.is_list:
            return quote
        indent = "\t" * paragraph.indent
        if st is StyleType.NUMBERED_LIST:
            marker = f"{self._number(paragraph)}. "
        elif st is StyleType.CHECKBOX:
            marker = "- [x] " if paragraph.checked else "- [ ] "
        else:
            marker = "- "
        return f"{quote}{indent}{marker}"

    def feed(self, frag: Fragment) -> None:
        if self.at_line_start and not self.soft_break:
            self._fence(frag.paragraph)
        if frag.is_line_break:
            self.parts.append("\n")
            self.soft_break = frag.text != "\n"
            self.at_line_start = True
            return
        if self.at_line_start:
            self.parts.append(self._prefix(frag.paragraph))
            self.at_line_start = False
            self.soft_break = False
        if frag.attachment is not None:
            self.parts.append(
                render_attachment(
                    frag.attachment,
                    self.ctx,
                    lambda cell: render_text(cell, self.ctx),
                )
            )
        elif self.in_code:
            self.parts.append(frag.text)
        else:
            self.parts.append(
                translate(
                    frag,
                    self.ctx.resolve_link,
                    include_font_size=self.ctx.options.include_font_size,
                )
            )

    def finish(self) -> str:
        if self.in_code:
            if self.parts and not self.parts[-1].endswith("\n"):
                self.parts.append("\n")
            self.parts.append(CODE_FENCE)
            self.in_code = False
        return "".join(self.parts)


def render_text(
    content: TextContent, ctx: AttachmentContext, *, omit_first_line: bool = False
) -> str:
    """Render note text content to Markdown."""
    fragments = merge_runs(content.runs)
    if omit_first_line:
        fragments = _drop_first_line(fragments)
    layout = _BlockLayout(ctx)
    for frag in fragments:
        layout.feed(frag)
    return layout.finish()
