"""Error types raised while decoding and converting notes.

Fatal errors abort conversion of the single note that raised them. The
orchestrator binds the note identifier and the pipeline stage onto the error
before re-raising so batch callers can log and skip.
"""

from __future__ import annotations

from typing import Optional


class NotesError(Exception):
    """Base error for note decoding and conversion."""

    def __init__(
        self,
        message: str = "",
        *,
        note_id: Optional[str] = None,
        stage: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.note_id = note_id
        self.stage = stage

    def bind(
        self, *, note_id: Optional[str] = None, stage: Optional[str] = None
    ) -> "NotesError":
        """Attach note/stage context without clobbering context set deeper down."""
        if self.note_id is None:
            self.note_id = note_id
        if self.stage is None:
            self.stage = stage
        return self

    def __str__(self) -> str:
        ctx = []
        if self.note_id:
            ctx.append(f"note={self.note_id}")
        if self.stage:
            ctx.append(f"stage={self.stage}")
        if not ctx:
            return self.message
        return f"{self.message} [{' '.join(ctx)}]"


class SchemaError(NotesError):
    """The declarative schema is invalid or lacks a requested message."""


class DecodeError(NotesError):
    """Base class for failures turning raw bytes into a decoded tree."""


class DecompressionError(DecodeError):
    """The blob is not a valid gzip/zlib/deflate stream."""


class SchemaMismatchError(DecodeError):
    """A known field arrived with a wire type its declared type cannot have."""


class CorruptMessageError(DecodeError):
    """The payload is truncated or not a tagged field stream at all."""


class MalformedNoteError(NotesError):
    """A decoded note failed an internal consistency check."""


class PasswordProtectedError(NotesError):
    """The note is locked; its content is not available."""
