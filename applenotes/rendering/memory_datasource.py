"""
Dictionary-backed NoteDataSource implementation.

Answers every datasource question from in-memory maps:
  - get_attachment_uti(identifier)  -> Optional[str]
  - get_mergeable_gz(identifier)    -> Optional[bytes]
  - resolve_attachment(ref)         -> Optional[ResolvedAttachment]
  - resolve_note_link(uri)          -> Optional[str]
  - (optional) get_title/get_primary_asset_url/get_inline_text/get_handwriting_summary

Row-fetch tooling (or a test) populates it with `add_attachment` /
`add_note_link` before conversion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..domain import AttachmentRef
from .renderer_iface import NoteDataSource, ResolvedAttachment

LOGGER = logging.getLogger(__name__)


@dataclass
class InMemoryDataSource(NoteDataSource):
    _uti: Dict[str, str] = field(default_factory=dict)
    _mergeable_gz: Dict[str, bytes] = field(default_factory=dict)
    _files: Dict[str, ResolvedAttachment] = field(default_factory=dict)
    _note_links: Dict[str, str] = field(default_factory=dict)
    _title: Dict[str, str] = field(default_factory=dict)
    _primary_asset_url: Dict[str, str] = field(default_factory=dict)
    _inline_text: Dict[str, str] = field(default_factory=dict)
    _handwriting: Dict[str, str] = field(default_factory=dict)

    # Minimal protocol
    def get_attachment_uti(self, identifier: str) -> Optional[str]:
        return self._uti.get(identifier)

    def get_mergeable_gz(self, identifier: str) -> Optional[bytes]:
        return self._mergeable_gz.get(identifier)

    def resolve_attachment(self, ref: AttachmentRef) -> Optional[ResolvedAttachment]:
        found = self._files.get(ref.identifier)
        if found is None:
            LOGGER.debug("notes.datasource.not_found id=%s kind=%s", ref.identifier, ref.kind.value)
        return found

    def resolve_note_link(self, uri: str) -> Optional[str]:
        return self._note_links.get(uri)

    # Optional richer protocol
    def get_title(self, identifier: str) -> Optional[str]:
        return self._title.get(identifier)

    def get_primary_asset_url(self, identifier: str) -> Optional[str]:
        return self._primary_asset_url.get(identifier)

    def get_inline_text(self, identifier: str) -> Optional[str]:
        return self._inline_text.get(identifier)

    def get_handwriting_summary(self, identifier: str) -> Optional[str]:
        return self._handwriting.get(identifier)

    # Population
    def add_attachment(
        self,
        identifier: str,
        *,
        uti: Optional[str] = None,
        path: Optional[str] = None,
        data: Optional[bytes] = None,
        mergeable_gz: Optional[bytes] = None,
        title: Optional[str] = None,
        url: Optional[str] = None,
        inline_text: Optional[str] = None,
        handwriting_summary: Optional[str] = None,
    ) -> None:
        if not identifier:
            return
        if uti:
            self._uti[identifier] = uti
        if path:
            self._files[identifier] = ResolvedAttachment(path=path, data=data)
        if mergeable_gz:
            self._mergeable_gz[identifier] = mergeable_gz
        if title:
            self._title[identifier] = title
        if url:
            self._primary_asset_url[identifier] = url
        if inline_text is not None:
            self._inline_text[identifier] = inline_text
        if handwriting_summary:
            self._handwriting[identifier] = handwriting_summary

    def add_note_link(self, uri: str, path: str) -> None:
        if uri and path:
            self._note_links[uri] = path
