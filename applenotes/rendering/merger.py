"""
Attribute run merger.

Coalesces attribute runs into maximal same-style fragments. Line breaks are
hard boundaries: each one becomes its own fragment regardless of style,
since a block construct (heading, list item, quote) cannot span an inline
style span. Attachment runs are never merged with their neighbours.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from ..domain import LINE_BREAKS, AttributeRun, Fragment


def _split_lines(text: str) -> Iterator[str]:
    start = 0
    for i, ch in enumerate(text):
        if ch in LINE_BREAKS:
            if i > start:
                yield text[start:i]
            yield ch
            start = i + 1
    if start < len(text):
        yield text[start:]


def merge_runs(runs: Iterable[AttributeRun]) -> List[Fragment]:
    out: List[Fragment] = []
    current: Optional[Fragment] = None
    buf: List[str] = []

    def flush() -> None:
        nonlocal current
        if current is not None and buf:
            out.append(Fragment(text="".join(buf), style=current.style, paragraph=current.paragraph))
        current = None
        buf.clear()

    for run in runs:
        if not run.text:
            continue
        if run.attachment is not None:
            flush()
            out.append(
                Fragment(
                    text=run.text,
                    style=run.style,
                    paragraph=run.paragraph,
                    attachment=run.attachment,
                )
            )
            continue
        for piece in _split_lines(run.text):
            if piece in LINE_BREAKS:
                flush()
                out.append(Fragment(text=piece, style=run.style, paragraph=run.paragraph))
                continue
            if (
                current is None
                or current.style != run.style
                or current.paragraph != run.paragraph
            ):
                flush()
                current = Fragment(text="", style=run.style, paragraph=run.paragraph)
            buf.append(piece)
    flush()
    return out
