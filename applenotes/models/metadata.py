"""
Per-note metadata record supplied by the row-fetch collaborator.

Timestamps arrive in whatever shape the source produced: `datetime`
objects, ISO-8601 strings, or Core Data numbers (seconds since
2001-01-01T00:00:00Z, the reference date of the Notes database).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

from dateutil.parser import isoparse
from pydantic import BeforeValidator, Field, PlainSerializer, field_validator

from ._base import NotesModel

CORE_DATA_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)


def _from_core_data(seconds) -> datetime:
    try:
        return CORE_DATA_EPOCH + timedelta(seconds=float(seconds))
    except (OverflowError, ValueError) as e:
        raise ValueError(f"Core Data timestamp {seconds!r} is out of range") from e


def _to_datetime_or_none(v):
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)
    if isinstance(v, bool):
        raise ValueError("Expected a timestamp, got a boolean")
    if isinstance(v, (int, float)):
        return _from_core_data(v)
    if isinstance(v, str):
        s = v.strip()
        try:
            seconds = float(s)
        except ValueError:
            dt = isoparse(s)
            return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
        return _from_core_data(seconds)
    raise ValueError("Expected datetime, ISO-8601 string or Core Data seconds")


NoteTimestamp = Annotated[
    Optional[datetime],
    BeforeValidator(_to_datetime_or_none),
    PlainSerializer(
        lambda v: None if v is None else v.isoformat(),
        return_type=Optional[str],
        when_used="json",
    ),
]


class NoteMetadata(NotesModel):
    identifier: str = Field(min_length=1)
    title: Optional[str] = None
    created_at: NoteTimestamp = None
    modified_at: NoteTimestamp = None
    folder_id: Optional[str] = None
    password_protected: bool = False
    handwriting_summary: Optional[str] = None

    @field_validator("handwriting_summary")
    @classmethod
    def _blank_summary_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v
