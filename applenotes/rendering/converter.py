"""
Conversion orchestrator: blob + metadata -> Markdown.

Runs the pipeline stages (decode, build, render) for one note, dispatches on
the content variant and collects non-fatal anomalies. Either the whole note
converts or a typed NotesError carrying the note id and stage is raised.

`convert_batch` is a thin helper for callers converting many notes: each note
is isolated, failures are logged and counted, and the batch never aborts.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from ..builder import build
from ..decoding import decode
from ..domain import NoteContent, ScanContent, TableContent, TextContent
from ..exceptions import MalformedNoteError, NotesError, PasswordProtectedError
from ..models.dto import BatchReport, ConversionResult
from ..models.metadata import NoteMetadata
from ..protobuf import NOTE_ROOT, Schema, default_schema
from .attachments import AttachmentContext, handwriting_callout, render_scan, render_table
from .options import ConvertOptions
from .renderer import render_text
from .renderer_iface import NoteDataSource

LOGGER = logging.getLogger(__name__)

MetadataLike = Union[NoteMetadata, Mapping[str, object]]


class NoteConverter:
    """Convert note blobs to Markdown with a shared schema, datasource and options."""

    def __init__(
        self,
        datasource: Optional[NoteDataSource] = None,
        options: Optional[ConvertOptions] = None,
        schema: Optional[Schema] = None,
    ) -> None:
        self.datasource = datasource
        self.options = options or ConvertOptions()
        self.schema = schema or default_schema()

    def _render(self, content: NoteContent, ctx: AttachmentContext) -> str:
        def render_cell(cell: TextContent) -> str:
            return render_text(cell, ctx)

        if isinstance(content, TextContent):
            return render_text(content, ctx, omit_first_line=self.options.omit_first_line)
        if isinstance(content, TableContent):
            return render_table(content, ctx, render_cell)
        if isinstance(content, ScanContent):
            return render_scan(content, ctx)
        raise TypeError(f"unsupported note content {type(content).__name__}")

    def convert(
        self, blob: bytes, metadata: MetadataLike, *, root: str = NOTE_ROOT
    ) -> ConversionResult:
        if isinstance(metadata, NoteMetadata):
            meta = metadata
        else:
            try:
                meta = NoteMetadata.model_validate(metadata)
            except ValidationError as exc:
                raise MalformedNoteError(
                    f"invalid note metadata: {exc.error_count()} error(s)",
                    note_id=_identifier_of(metadata),
                    stage="metadata",
                ) from exc
        note_id = meta.identifier
        if meta.password_protected:
            raise PasswordProtectedError("note is password protected", note_id=note_id)

        stage = "decode"
        try:
            tree = decode(blob, self.schema, root)
            stage = "build"
            doc = build(tree)
            stage = "render"
            ctx = AttachmentContext(
                datasource=self.datasource,
                options=self.options,
                schema=self.schema,
                note_id=note_id,
            )
            markdown = self._render(doc.content, ctx)
        except NotesError as exc:
            raise exc.bind(note_id=note_id, stage=stage)

        if self.options.include_handwriting and meta.handwriting_summary:
            markdown = f"{handwriting_callout(meta.handwriting_summary)}\n{markdown}"

        LOGGER.debug(
            "notes.convert.ok note=%s kind=%s chars=%d anomalies=%d",
            note_id,
            doc.kind.value,
            len(markdown),
            len(ctx.anomalies),
        )
        return ConversionResult(
            note_id=note_id,
            kind=doc.kind,
            markdown=markdown,
            anomalies=tuple(ctx.anomalies),
            files=tuple(ctx.files),
            metadata=meta,
        )


def convert_batch(
    items: Iterable[Tuple[bytes, MetadataLike]],
    datasource: Optional[NoteDataSource] = None,
    options: Optional[ConvertOptions] = None,
    max_workers: int = 1,
    *,
    root: str = NOTE_ROOT,
) -> BatchReport:
    """Convert every (blob, metadata) pair; one note's failure never stops the rest."""
    converter = NoteConverter(datasource=datasource, options=options)
    report = BatchReport()

    def attempt(item: Tuple[bytes, MetadataLike]):
        blob, metadata = item
        try:
            return converter.convert(blob, metadata, root=root)
        except NotesError as exc:
            return exc
        except Exception as exc:
            LOGGER.exception(
                "notes.batch.unexpected note=%s error=%s", _identifier_of(metadata), exc
            )
            return exc

    pending = list(items)
    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(attempt, pending))
    else:
        outcomes = [attempt(item) for item in pending]

    for (_, metadata), outcome in zip(pending, outcomes):
        if isinstance(outcome, ConversionResult):
            report.results.append(outcome)
            report.counts["converted"] += 1
            continue
        note_id = getattr(outcome, "note_id", None) or _identifier_of(metadata)
        if isinstance(outcome, PasswordProtectedError):
            LOGGER.info("notes.batch.skipped note=%s password protected", note_id)
            report.skipped.append(note_id)
            report.counts["skipped"] += 1
            continue
        LOGGER.warning("notes.batch.failed note=%s error=%s", note_id, outcome)
        report.failures[note_id] = str(outcome)
        report.counts[type(outcome).__name__] += 1
    return report


def _identifier_of(metadata: MetadataLike) -> str:
    if isinstance(metadata, NoteMetadata):
        return metadata.identifier
    if isinstance(metadata, Mapping):
        return str(metadata.get("identifier", "?"))
    return "?"
