# applenotes/domain.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple, Union


class ContentKind(str, Enum):
    TEXT = "text"
    TABLE = "table"
    SCAN = "scan"


class StyleType(IntEnum):
    DEFAULT = -1
    TITLE = 0
    HEADING = 1
    SUBHEADING = 2
    MONOSPACED = 4
    DOTTED_LIST = 100
    DASHED_LIST = 101
    NUMBERED_LIST = 102
    CHECKBOX = 103

    @classmethod
    def coerce(cls, value: Optional[int]) -> "StyleType":
        try:
            return cls(value if value is not None else -1)
        except ValueError:
            return cls.DEFAULT

    @property
    def is_list(self) -> bool:
        return self in (
            StyleType.DOTTED_LIST,
            StyleType.DASHED_LIST,
            StyleType.NUMBERED_LIST,
            StyleType.CHECKBOX,
        )


class AttachmentKind(str, Enum):
    TABLE = "table"
    URL = "url"
    SCAN = "scan"
    MODIFIED_SCAN = "modified-scan"
    DRAWING = "drawing"
    HASHTAG = "hashtag"
    MENTION = "mention"
    INTERNAL_LINK = "internal-link"
    MEDIA = "media"


_KIND_BY_UTI = {
    "com.apple.notes.table": AttachmentKind.TABLE,
    "public.url": AttachmentKind.URL,
    "com.apple.notes.gallery": AttachmentKind.SCAN,
    "com.apple.paper.doc.scan": AttachmentKind.MODIFIED_SCAN,
    "com.apple.drawing": AttachmentKind.DRAWING,
    "com.apple.drawing.2": AttachmentKind.DRAWING,
    "com.apple.paper": AttachmentKind.DRAWING,
    "com.apple.notes.inlinetextattachment.hashtag": AttachmentKind.HASHTAG,
    "com.apple.notes.inlinetextattachment.mention": AttachmentKind.MENTION,
    "com.apple.notes.inlinetextattachment.link": AttachmentKind.INTERNAL_LINK,
}


def attachment_kind_for_uti(uti: Optional[str]) -> AttachmentKind:
    if not uti:
        return AttachmentKind.MEDIA
    return _KIND_BY_UTI.get(uti.lower(), AttachmentKind.MEDIA)


@dataclass(frozen=True)
class AttachmentRef:
    identifier: str
    kind: AttachmentKind = AttachmentKind.MEDIA
    uti: Optional[str] = None
    # Resolved into bytes by the attachment collaborator (e.g. a media folder)
    source_hint: Optional[str] = None

    @classmethod
    def from_uti(
        cls, identifier: str, uti: Optional[str], source_hint: Optional[str] = None
    ) -> "AttachmentRef":
        return cls(
            identifier=identifier,
            kind=attachment_kind_for_uti(uti),
            uti=uti,
            source_hint=source_hint,
        )

    def with_uti(self, uti: Optional[str]) -> "AttachmentRef":
        if not uti or uti == self.uti:
            return self
        return AttachmentRef.from_uti(self.identifier, uti, self.source_hint)


@dataclass(frozen=True)
class StyleSet:
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    superscript: int = 0  # 1 super, -1 sub
    color: Optional[str] = None  # "#RRGGBB"
    font_size: Optional[float] = None  # points
    link: Optional[str] = None

    @property
    def is_plain(self) -> bool:
        return self == PLAIN


PLAIN = StyleSet()


@dataclass(frozen=True)
class ParagraphStyle:
    style_type: StyleType = StyleType.DEFAULT
    indent: int = 0
    checked: Optional[bool] = None
    block_quote: bool = False
    start_number: Optional[int] = None

    @property
    def is_monospaced(self) -> bool:
        return self.style_type is StyleType.MONOSPACED


BODY = ParagraphStyle()


@dataclass(frozen=True)
class AttributeRun:
    text: str
    style: StyleSet = PLAIN
    paragraph: ParagraphStyle = BODY
    attachment: Optional[AttachmentRef] = None


@dataclass(frozen=True)
class TextContent:
    text: str
    runs: Tuple[AttributeRun, ...] = ()

    kind = ContentKind.TEXT


@dataclass(frozen=True)
class TableAxisItem:
    identifier: str
    order: int


@dataclass(frozen=True)
class TableCell:
    row_id: str
    column_id: str
    content: TextContent


@dataclass(frozen=True)
class TableContent:
    """Identifier-addressed table as stored: rows, columns and the cells pointing at them."""

    rows: Tuple[TableAxisItem, ...] = ()
    columns: Tuple[TableAxisItem, ...] = ()
    cells: Tuple[TableCell, ...] = ()

    kind = ContentKind.TABLE


@dataclass(frozen=True)
class ScanContent:
    attachments: Tuple[AttachmentRef, ...] = ()

    kind = ContentKind.SCAN


NoteContent = Union[TextContent, TableContent, ScanContent]


@dataclass(frozen=True)
class NoteDocument:
    content: NoteContent
    attachments: Tuple[AttachmentRef, ...] = ()

    @property
    def kind(self) -> ContentKind:
        return self.content.kind

    @property
    def runs(self) -> Tuple[AttributeRun, ...]:
        if isinstance(self.content, TextContent):
            return self.content.runs
        return ()


@dataclass(frozen=True)
class TableGrid:
    rows: Tuple[Tuple[str, ...], ...] = ()

    @property
    def column_count(self) -> int:
        return len(self.rows[0]) if self.rows else 0


@dataclass(frozen=True)
class Fragment:
    """Merged, boundary-adjusted unit of text sharing one style."""

    text: str
    style: StyleSet = PLAIN
    paragraph: ParagraphStyle = BODY
    attachment: Optional[AttachmentRef] = None

    @property
    def is_line_break(self) -> bool:
        return self.attachment is None and self.text in LINE_BREAKS


# Hard paragraph break and Apple's soft line separator
LINE_BREAKS = ("\n", "\u2028")


class AnomalyKind(str, Enum):
    TABLE_CONFLICT = "table-conflict"
    DANGLING_REFERENCE = "dangling-reference"
    MISSING_ATTACHMENT = "missing-attachment"


@dataclass(frozen=True)
class Anomaly:
    kind: AnomalyKind
    message: str
    identifier: Optional[str] = None
