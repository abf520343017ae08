"""
Typed model builder: maps a decoded tree onto :mod:`applenotes.domain` types.

Three payload families are recognised from the sub-messages present:

- ``NoteStoreProto.document.note``: note text plus attribute runs (TEXT)
- a mergeable object whose root custom map is an ``ICTable``  (TABLE)
- a mergeable gallery whose custom maps name scan attachments  (SCAN)

Run lengths are counted in UTF-16 code units, as Apple stores them, so the
note text is sliced through its UTF-16 encoding.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .decoding import DecodedMessage
from .domain import (
    AttachmentKind,
    AttachmentRef,
    AttributeRun,
    NoteDocument,
    ParagraphStyle,
    ScanContent,
    StyleSet,
    StyleType,
    TableAxisItem,
    TableCell,
    TableContent,
    TextContent,
)
from .exceptions import MalformedNoteError

LOGGER = logging.getLogger(__name__)

TABLE_TYPES = frozenset(
    {
        "com.apple.notes.ICTable",
        "com.apple.notes.ICTable2",
        "com.apple.notes.CRTable",
    }
)
ROWS_KEY = "crRows"
COLUMNS_KEY = "crColumns"
CELL_COLUMNS_KEY = "cellColumns"


def _channel(value: float) -> int:
    # NaN and infinities are decodable float32 values; treat them as no intensity
    if not math.isfinite(value):
        return 0
    return max(0, min(255, round(value * 255)))


def color_to_hex(red: float, green: float, blue: float) -> str:
    """Apple stores colours as 0..1 float channels; render as ``#RRGGBB``."""
    r8, g8, b8 = (_channel(c) for c in (red, green, blue))
    return f"#{r8:02X}{g8:02X}{b8:02X}"


def style_from_run(run: DecodedMessage) -> StyleSet:
    weight = run.get("font_weight", 0)
    color = None
    c = run.message("color")
    if c is not None:
        color = color_to_hex(c.get("red", 0.0), c.get("green", 0.0), c.get("blue", 0.0))
    font_size = None
    font = run.message("font")
    if font is not None and font.has("point_size"):
        size = float(font.get("point_size"))
        font_size = size if math.isfinite(size) and size > 0 else None
    superscript = run.get("superscript", 0)
    return StyleSet(
        bold=weight in (1, 3),
        italic=weight in (2, 3),
        underline=run.get("underlined", 0) == 1,
        strikethrough=run.get("strikethrough", 0) == 1,
        superscript=(superscript > 0) - (superscript < 0),
        color=color,
        font_size=font_size,
        link=run.get("link") or None,
    )


def paragraph_from_run(run: DecodedMessage) -> ParagraphStyle:
    ps = run.message("paragraph_style")
    if ps is None:
        return ParagraphStyle()
    checked = None
    checklist = ps.message("checklist")
    if checklist is not None:
        checked = checklist.get("done", 0) == 1
    start = ps.get("starting_list_item_number") if ps.has("starting_list_item_number") else None
    return ParagraphStyle(
        # Absent style_type means body text; protobuf default is -1, not TITLE
        style_type=StyleType.coerce(ps.get("style_type", -1)),
        indent=max(0, ps.get("indent_amount", 0)),
        checked=checked,
        block_quote=ps.get("block_quote", 0) == 1,
        start_number=start,
    )


def attachment_from_run(run: DecodedMessage) -> Optional[AttachmentRef]:
    info = run.message("attachment_info")
    if info is None:
        return None
    ident = info.get("attachment_identifier") or ""
    uti = info.get("type_uti") or None
    if not ident and not uti:
        return None
    return AttachmentRef.from_uti(ident, uti)


def _utf16_len(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def build_text(note: DecodedMessage) -> TextContent:
    """Slice the shared note text into typed attribute runs."""
    text = note.get("note_text", "") or ""
    encoded = text.encode("utf-16-le")
    total = len(encoded) // 2
    runs: List[AttributeRun] = []
    offset = 0
    for idx, run in enumerate(note.messages("attribute_run")):
        length = run.get("length", 0)
        if length < 0:
            raise MalformedNoteError(f"attribute run {idx} has negative length {length}")
        end = offset + length
        if end > total:
            raise MalformedNoteError(
                f"attribute runs cover {end} UTF-16 units past text length {total}"
            )
        try:
            chunk = encoded[offset * 2 : end * 2].decode("utf-16-le")
        except UnicodeDecodeError as e:
            raise MalformedNoteError(
                f"attribute run {idx} splits a surrogate pair at unit {offset}"
            ) from e
        runs.append(
            AttributeRun(
                text=chunk,
                style=style_from_run(run),
                paragraph=paragraph_from_run(run),
                attachment=attachment_from_run(run),
            )
        )
        offset = end
    if offset != total:
        raise MalformedNoteError(
            f"attribute runs cover {offset} UTF-16 units, note text has {total}"
        )
    return TextContent(text=text, runs=tuple(runs))


# ----------------------------- Mergeable data --------------------------------


@dataclass
class _MergeableObjects:
    entries: List[DecodedMessage]
    keys: List[str]
    types: List[str]
    uuids: List[bytes]

    @classmethod
    def from_tree(cls, data: DecodedMessage) -> "_MergeableObjects":
        return cls(
            entries=data.messages("mergeable_data_object_entry"),
            keys=data.get_all("mergeable_data_object_key_item"),
            types=data.get_all("mergeable_data_object_type_item"),
            uuids=data.get_all("mergeable_data_object_uuid_item"),
        )

    def entry(self, object_id: Optional[DecodedMessage]) -> Optional[DecodedMessage]:
        if object_id is None or not object_id.has("object_index"):
            return None
        idx = object_id.get("object_index")
        return self.entries[idx] if 0 <= idx < len(self.entries) else None

    def key_name(self, idx: int) -> Optional[str]:
        return self.keys[idx] if 0 <= idx < len(self.keys) else None

    def type_name(self, idx: int) -> Optional[str]:
        return self.types[idx] if 0 <= idx < len(self.types) else None

    def uuid_id(self, idx: int) -> str:
        if 0 <= idx < len(self.uuids):
            return self.uuids[idx].hex()
        return f"uuid#{idx}"

    def identity(self, entry: Optional[DecodedMessage]) -> Optional[str]:
        """Stable identifier of a row/column identity object (a UUID custom map)."""
        if entry is None:
            return None
        cmap = entry.message("custom_map")
        if cmap is None:
            return None
        map_entries = cmap.messages("map_entry")
        if not map_entries:
            return None
        value = map_entries[0].message("value")
        if value is None or not value.has("unsigned_integer_value"):
            return None
        return self.uuid_id(value.get("unsigned_integer_value"))

    def map_keys(self, entry: DecodedMessage) -> Dict[str, DecodedMessage]:
        cmap = entry.message("custom_map")
        out: Dict[str, DecodedMessage] = {}
        if cmap is None:
            return out
        for me in cmap.messages("map_entry"):
            name = self.key_name(me.get("key", -1))
            target = self.entry(me.message("value"))
            if name is not None and target is not None:
                out[name] = target
        return out

    def is_table_root(self, entry: DecodedMessage) -> bool:
        cmap = entry.message("custom_map")
        if cmap is None:
            return False
        if self.type_name(cmap.get("type", -1)) in TABLE_TYPES:
            return True
        names = self.map_keys(entry)
        return ROWS_KEY in names and COLUMNS_KEY in names and CELL_COLUMNS_KEY in names


def _axis_items(objs: _MergeableObjects, ordered: DecodedMessage) -> Tuple[TableAxisItem, ...]:
    oset = ordered.message("ordered_set")
    ordering = oset.message("ordering") if oset is not None else None
    if ordering is None:
        return ()
    orders: Dict[str, int] = {}
    array = ordering.message("array")
    if array is not None:
        for position, att in enumerate(array.messages("attachment")):
            uuid = att.get("uuid")
            if not uuid:
                continue
            orders[uuid.hex()] = att.get("index", position)
    contents = ordering.message("contents")
    if contents is not None:
        # Remap: the value identity takes the slot of its key identity
        for elem in contents.messages("element"):
            key_id = objs.identity(objs.entry(elem.message("key")))
            value_id = objs.identity(objs.entry(elem.message("value")))
            if value_id is None or key_id not in orders:
                continue
            orders[value_id] = orders[key_id]
    return tuple(TableAxisItem(identifier=i, order=o) for i, o in orders.items())


def _cells(objs: _MergeableObjects, cell_columns: DecodedMessage) -> Tuple[TableCell, ...]:
    out: List[TableCell] = []
    columns = cell_columns.message("dictionary")
    if columns is None:
        return ()
    for col in columns.messages("element"):
        col_id = objs.identity(objs.entry(col.message("key")))
        rows = objs.entry(col.message("value"))
        if col_id is None or rows is None or rows.message("dictionary") is None:
            continue
        for row in rows.message("dictionary").messages("element"):
            row_id = objs.identity(objs.entry(row.message("key")))
            cell = objs.entry(row.message("value"))
            if row_id is None or cell is None or cell.message("note") is None:
                continue
            out.append(
                TableCell(row_id=row_id, column_id=col_id, content=build_text(cell.message("note")))
            )
    return tuple(out)


def build_table(objs: _MergeableObjects, root: DecodedMessage) -> TableContent:
    parts = objs.map_keys(root)
    rows = _axis_items(objs, parts[ROWS_KEY]) if ROWS_KEY in parts else ()
    cols = _axis_items(objs, parts[COLUMNS_KEY]) if COLUMNS_KEY in parts else ()
    cells = _cells(objs, parts[CELL_COLUMNS_KEY]) if CELL_COLUMNS_KEY in parts else ()
    LOGGER.debug(
        "notes.builder.table rows=%d cols=%d cells=%d", len(rows), len(cols), len(cells)
    )
    return TableContent(rows=rows, columns=cols, cells=cells)


def build_scan(objs: _MergeableObjects) -> ScanContent:
    refs: List[AttachmentRef] = []
    for entry in objs.entries:
        cmap = entry.message("custom_map")
        if cmap is None:
            continue
        map_entries = cmap.messages("map_entry")
        value = map_entries[0].message("value") if map_entries else None
        ident = value.get("string_value") if value is not None else None
        if ident:
            refs.append(AttachmentRef(identifier=ident, kind=AttachmentKind.MODIFIED_SCAN))
    return ScanContent(attachments=tuple(refs))


def build(tree: DecodedMessage) -> NoteDocument:
    """Map a decoded tree onto a :class:`NoteDocument` of exactly one kind."""
    document = tree.message("document") if "document" in tree.spec.by_name else None
    note = document.message("note") if document is not None else None
    if note is not None:
        content = build_text(note)
        refs = tuple(r.attachment for r in content.runs if r.attachment is not None)
        return NoteDocument(content=content, attachments=refs)

    mergeable = (
        tree.message("mergable_data_object")
        if "mergable_data_object" in tree.spec.by_name
        else None
    )
    data = mergeable.message("mergeable_data_object_data") if mergeable is not None else None
    if data is None:
        raise MalformedNoteError(f"{tree.name} carries neither a note nor mergeable data")

    objs = _MergeableObjects.from_tree(data)
    for entry in objs.entries:
        if objs.is_table_root(entry):
            return NoteDocument(content=build_table(objs, entry))

    scan = build_scan(objs)
    if scan.attachments:
        return NoteDocument(content=scan, attachments=scan.attachments)
    raise MalformedNoteError("mergeable data holds neither a table nor scan pages")
