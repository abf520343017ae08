"""Public API for Apple Notes blob decoding and Markdown conversion."""

from .builder import build
from .decoding import DecodedMessage, decode, decode_message, decompress
from .domain import Anomaly, AnomalyKind, AttachmentKind, AttachmentRef, ContentKind, NoteDocument
from .exceptions import (
    CorruptMessageError,
    DecodeError,
    DecompressionError,
    MalformedNoteError,
    NotesError,
    PasswordProtectedError,
    SchemaError,
    SchemaMismatchError,
)
from .models import BatchReport, ConversionResult, NoteMetadata
from .protobuf import MERGEABLE_ROOT, NOTE_ROOT, Schema, default_schema, load_schema
from .rendering.converter import NoteConverter, convert_batch
from .rendering.memory_datasource import InMemoryDataSource
from .rendering.options import ConvertOptions
from .rendering.renderer_iface import NoteDataSource, ResolvedAttachment

__all__ = [
    "NoteConverter",
    "convert_batch",
    "ConvertOptions",
    "NoteDataSource",
    "InMemoryDataSource",
    "ResolvedAttachment",
    "NoteMetadata",
    "ConversionResult",
    "BatchReport",
    "NoteDocument",
    "ContentKind",
    "AttachmentRef",
    "AttachmentKind",
    "Anomaly",
    "AnomalyKind",
    "DecodedMessage",
    "Schema",
    "NOTE_ROOT",
    "MERGEABLE_ROOT",
    "build",
    "decode",
    "decode_message",
    "decompress",
    "default_schema",
    "load_schema",
    "NotesError",
    "SchemaError",
    "DecodeError",
    "DecompressionError",
    "SchemaMismatchError",
    "CorruptMessageError",
    "MalformedNoteError",
    "PasswordProtectedError",
]
