"""
Collaborator seam for the Apple Notes converter.

Defines the datasource (`NoteDataSource`) the renderer calls to resolve:
  - the UTI of an embedded attachment (by identifier),
  - the mergeable bytes (gzipped) for table and scan-gallery attachments,
  - attachment files (returns None for NotFound), and
  - internal note links (returns None for Unresolved).

Optional richer datasource capabilities (if present) may include:
  - get_title(identifier)
  - get_primary_asset_url(identifier)
  - get_inline_text(identifier)          # hashtag / mention display text
  - get_handwriting_summary(identifier)  # drawings

The renderer never performs I/O; it only calls this interface.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from ..domain import AttachmentRef


@dataclass(frozen=True)
class ResolvedAttachment:
    """An attachment file as placed in the destination vault."""

    path: str
    data: Optional[bytes] = None


class NoteDataSource(Protocol):
    """Minimal datasource required by the renderer."""

    def get_attachment_uti(self, identifier: str) -> Optional[str]: ...

    def get_mergeable_gz(self, identifier: str) -> Optional[bytes]: ...

    def resolve_attachment(self, ref: AttachmentRef) -> Optional[ResolvedAttachment]: ...

    def resolve_note_link(self, uri: str) -> Optional[str]: ...


def optional_capability(datasource: Optional[NoteDataSource], name: str, identifier: str):
    """Call an optional datasource method if the datasource provides it."""
    if datasource is None or not identifier:
        return None
    fn = getattr(datasource, name, None)
    return fn(identifier) if callable(fn) else None
