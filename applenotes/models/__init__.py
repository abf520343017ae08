"""Public exports for note metadata and conversion results."""

from __future__ import annotations

from .dto import BatchReport, ConversionResult
from .metadata import NoteMetadata

__all__ = [
    "BatchReport",
    "ConversionResult",
    "NoteMetadata",
]
