"""Conversion result objects handed back to callers."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..domain import Anomaly, ContentKind
from ..rendering.renderer_iface import ResolvedAttachment
from .metadata import NoteMetadata


@dataclass(frozen=True)
class ConversionResult:
    """One converted note: the final Markdown plus what the caller should log or copy."""

    note_id: str
    kind: ContentKind
    markdown: str
    anomalies: Tuple[Anomaly, ...] = ()
    # Resolved attachment files in emit order
    files: Tuple[ResolvedAttachment, ...] = ()
    metadata: Optional[NoteMetadata] = None


@dataclass
class BatchReport:
    results: List[ConversionResult] = field(default_factory=list)
    # note id -> error message
    failures: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    counts: Counter = field(default_factory=Counter)

    @property
    def ok(self) -> bool:
        return not self.failures
