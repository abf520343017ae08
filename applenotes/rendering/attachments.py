"""
Kind-based attachment rendering strategies for Apple Notes.

This module contains a small dispatcher that maps an attachment reference
(and whatever the datasource can tell about it) to a Markdown fragment. It
performs no I/O itself; files, mergeable payloads and link targets all come
from the caller's datasource via the AttachmentContext.

Design:
  - AttachmentContext: per-note bundle of datasource, options and the
    anomaly/file ledgers filled while rendering
  - Renderers: small classes implementing `render(ref, ctx, render_note_cb)`
  - Dispatcher: AttachmentKind map, then the generic media fallback

Anything the datasource cannot provide degrades to an inline placeholder
plus a MISSING_ATTACHMENT anomaly; it never fails the note.

`render_note_cb` renders nested TextContent (table cells) through the main
text renderer without creating a cyclic import.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Set

from ..builder import build
from ..decoding import decode
from ..domain import (
    Anomaly,
    AnomalyKind,
    AttachmentKind,
    AttachmentRef,
    ScanContent,
    TableContent,
    TextContent,
)
from ..exceptions import MalformedNoteError
from ..protobuf import MERGEABLE_ROOT, Schema, default_schema
from .markup import markdown_link, render_link
from .options import ConvertOptions
from .renderer_iface import NoteDataSource, ResolvedAttachment, optional_capability
from .table_builder import reconstruct_table, render_markdown_table

LOGGER = logging.getLogger(__name__)

RenderNoteCb = Callable[[TextContent], str]


def handwriting_callout(summary: str) -> str:
    """Obsidian callout quoting a handwriting summary verbatim."""
    lines = summary.splitlines() or [""]
    body = "\n".join(f"> {line}" if line else ">" for line in lines)
    return f"> [!Handwriting]-\n{body}\n"


def embed_link(path: str, wiki_links: bool = True) -> str:
    if wiki_links:
        return f"![[{path}]]"
    return "!" + markdown_link("", path)


@dataclass
class AttachmentContext:
    datasource: Optional[NoteDataSource] = None
    options: ConvertOptions = field(default_factory=ConvertOptions)
    schema: Schema = field(default_factory=default_schema)
    note_id: Optional[str] = None
    anomalies: List[Anomaly] = field(default_factory=list)
    files: List[ResolvedAttachment] = field(default_factory=list)
    # Table and gallery identifiers whose content is being rendered right now
    active: Set[str] = field(default_factory=set)

    def record(self, anomaly: Anomaly) -> None:
        LOGGER.warning(
            "notes.anomaly note=%s kind=%s id=%s %s",
            self.note_id,
            anomaly.kind.value,
            anomaly.identifier,
            anomaly.message,
        )
        self.anomalies.append(anomaly)

    def resolve_link(self, uri: str) -> Optional[str]:
        if self.datasource is None:
            return None
        return self.datasource.resolve_note_link(uri)

    def missing(self, ref: AttachmentRef, reason: str) -> str:
        self.record(
            Anomaly(
                kind=AnomalyKind.MISSING_ATTACHMENT,
                message=f"{ref.kind.value} attachment: {reason}",
                identifier=ref.identifier or None,
            )
        )
        return self.options.missing_attachment(ref.identifier)

    def embed(self, ref: AttachmentRef) -> str:
        resolved = self.datasource.resolve_attachment(ref) if self.datasource else None
        if resolved is None:
            return self.missing(ref, "file not found")
        self.files.append(resolved)
        return embed_link(resolved.path, self.options.wiki_links)

    def mergeable(self, ref: AttachmentRef):
        """Decode an attachment's mergeable payload; None when the datasource has none."""
        gz = optional_capability(self.datasource, "get_mergeable_gz", ref.identifier)
        if not gz:
            return None
        return build(decode(gz, self.schema, MERGEABLE_ROOT))

    @contextmanager
    def nested(self, ref: AttachmentRef) -> Iterator[None]:
        self.active.add(ref.identifier)
        try:
            yield
        finally:
            self.active.discard(ref.identifier)


def render_table(content: TableContent, ctx: AttachmentContext, render_note_cb: RenderNoteCb) -> str:
    grid, anomalies = reconstruct_table(content, render_note_cb)
    for anomaly in anomalies:
        ctx.record(anomaly)
    return render_markdown_table(grid)


def render_scan(content: ScanContent, ctx: AttachmentContext) -> str:
    return "\n".join(ctx.embed(page) for page in content.attachments)


class _Renderer:
    def render(
        self, ref: AttachmentRef, ctx: AttachmentContext, render_note_cb: RenderNoteCb
    ) -> str:  # pragma: no cover - interface
        raise NotImplementedError


class _MediaRenderer(_Renderer):
    def render(self, ref, ctx, render_note_cb) -> str:
        return ctx.embed(ref)


class _DrawingRenderer(_Renderer):
    def render(self, ref, ctx, render_note_cb) -> str:
        link = ctx.embed(ref)
        if not ctx.options.include_handwriting:
            return link
        summary = optional_capability(ctx.datasource, "get_handwriting_summary", ref.identifier)
        if not summary:
            return link
        return f"\n{handwriting_callout(summary)}\n{link}"


class _TableRenderer(_Renderer):
    def render(self, ref, ctx, render_note_cb) -> str:
        if ref.identifier in ctx.active:
            return ctx.missing(ref, "table embeds itself")
        doc = ctx.mergeable(ref)
        if doc is None:
            return ctx.missing(ref, "no table data")
        if not isinstance(doc.content, TableContent):
            raise MalformedNoteError(f"attachment {ref.identifier} is not a table")
        with ctx.nested(ref):
            md = render_table(doc.content, ctx, render_note_cb)
        return f"\n{md}\n" if md else ""


class _ScanRenderer(_Renderer):
    def render(self, ref, ctx, render_note_cb) -> str:
        if ref.identifier in ctx.active:
            return ctx.missing(ref, "gallery embeds itself")
        doc = ctx.mergeable(ref)
        if doc is None:
            return ctx.missing(ref, "no gallery data")
        if not isinstance(doc.content, ScanContent):
            raise MalformedNoteError(f"attachment {ref.identifier} is not a scan gallery")
        with ctx.nested(ref):
            return render_scan(doc.content, ctx)


class _UrlRenderer(_Renderer):
    def render(self, ref, ctx, render_note_cb) -> str:
        url = optional_capability(ctx.datasource, "get_primary_asset_url", ref.identifier)
        if not url:
            return ctx.missing(ref, "no URL")
        title = optional_capability(ctx.datasource, "get_title", ref.identifier)
        return markdown_link(f"**{title}**" if title else url, url)


class _InlineTextRenderer(_Renderer):
    def render(self, ref, ctx, render_note_cb) -> str:
        text = optional_capability(ctx.datasource, "get_inline_text", ref.identifier)
        if text is None:
            return ctx.missing(ref, "no inline text")
        return text


class _InternalLinkRenderer(_Renderer):
    def render(self, ref, ctx, render_note_cb) -> str:
        uri = optional_capability(ctx.datasource, "get_primary_asset_url", ref.identifier)
        if not uri:
            return ctx.missing(ref, "no link target")
        label = optional_capability(ctx.datasource, "get_inline_text", ref.identifier)
        return render_link(label or uri, uri, ctx.resolve_link)


_MEDIA = _MediaRenderer()

RENDERERS: Dict[AttachmentKind, _Renderer] = {
    AttachmentKind.TABLE: _TableRenderer(),
    AttachmentKind.SCAN: _ScanRenderer(),
    AttachmentKind.URL: _UrlRenderer(),
    AttachmentKind.HASHTAG: _InlineTextRenderer(),
    AttachmentKind.MENTION: _InlineTextRenderer(),
    AttachmentKind.INTERNAL_LINK: _InternalLinkRenderer(),
    AttachmentKind.DRAWING: _DrawingRenderer(),
    AttachmentKind.MODIFIED_SCAN: _MEDIA,
    AttachmentKind.MEDIA: _MEDIA,
}


def render_attachment(
    ref: AttachmentRef, ctx: AttachmentContext, render_note_cb: RenderNoteCb
) -> str:
    if not ref.identifier:
        return ctx.missing(ref, "run carries no attachment identifier")
    if ref.uti is None:
        ref = ref.with_uti(optional_capability(ctx.datasource, "get_attachment_uti", ref.identifier))
    LOGGER.debug("notes.attachment.render id=%s kind=%s", ref.identifier, ref.kind.value)
    return RENDERERS.get(ref.kind, _MEDIA).render(ref, ctx, render_note_cb)
