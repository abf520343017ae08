"""
Debug helpers for mapping attribute runs to the exact text slices they cover.

These utilities are intended for troubleshooting decode and layout issues.
Unlike the builder they never raise on inconsistent run lengths, so they can
be pointed at the very notes the converter rejects.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from ..decoding import DecodedMessage
from ..domain import StyleType, TextContent
from .merger import merge_runs


def _style_name(value: Optional[int]) -> str:
    if value is None:
        return "(none)"
    try:
        return StyleType(int(value)).name
    except ValueError:
        return str(value)


def _utf16_slice(encoded: bytes, start: int, length: int) -> str:
    return encoded[start * 2 : (start + length) * 2].decode("utf-16-le", errors="replace")


def map_attribute_runs(note: DecodedMessage) -> List[Dict[str, object]]:
    """Return a list of dictionaries mapping each attribute run to its text.

    Each dict contains:
      - index: run index
      - utf16_start: start offset in UTF-16 code units
      - utf16_len: run length
      - text: string slice for the run
      - style_type, indent_amount, block_quote
      - has_attachment: whether the run carries attachment_info
    """
    encoded = (note.get("note_text", "") or "").encode("utf-16-le")
    pos = 0
    out: List[Dict[str, object]] = []
    for idx, r in enumerate(note.messages("attribute_run")):
        length = int(r.get("length", 0) or 0)
        ps = r.message("paragraph_style")
        out.append(
            {
                "index": idx,
                "utf16_start": pos,
                "utf16_len": length,
                "text": _utf16_slice(encoded, pos, length),
                "style_type": ps.get("style_type") if ps is not None else None,
                "indent_amount": ps.get("indent_amount") if ps is not None else None,
                "block_quote": bool(ps.get("block_quote")) if ps is not None else False,
                "has_attachment": r.has("attachment_info"),
            }
        )
        pos += length
    return out


def _pretty(raw: str) -> str:
    # Make control characters explicit to see line boundaries clearly
    return (
        raw.replace("\n", "⏎\n")
        .replace("\u2028", "⤶\n")
        .replace("\x00", "␀")
        .replace("\ufffc", "{OBJ}")
    )


def dump_runs_text(note: DecodedMessage) -> str:
    """Return a human-readable dump of runs with escaped whitespace markers."""
    rows = []
    for row in map_attribute_runs(note):
        st_name = _style_name(row.get("style_type"))
        indent = row.get("indent_amount")
        rows.append(
            f"[{row['index']:03d}] off={row['utf16_start']:<5} len={row['utf16_len']:<4} "
            f"style={st_name:<14} indent={indent!s:<4} quote={int(bool(row['block_quote']))} "
            f"att={int(bool(row['has_attachment']))} text=“{_pretty(str(row['text']))}”"
        )
    return "\n".join(rows)


def map_merged_runs(content: TextContent) -> List[Dict[str, object]]:
    """Same idea as map_attribute_runs, but after the run merge step.

    Useful to understand how the renderer will chunk paragraphs.
    """
    out: List[Dict[str, object]] = []
    for idx, frag in enumerate(merge_runs(content.runs)):
        out.append(
            {
                "index": idx,
                "text": frag.text,
                "style_type": frag.paragraph.style_type.name,
                "indent_amount": frag.paragraph.indent,
                "plain": frag.style.is_plain,
                "line_break": frag.is_line_break,
                "has_attachment": frag.attachment is not None,
            }
        )
    return out
