"""
Conversion configuration for Apple Notes Markdown output.

Centralizes behavior flags so callers can tune defaults without touching
core logic. ``ConvertOptions.from_env()`` lets the surrounding tooling flip
flags through environment variables; explicit keyword arguments win.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Optional

_ENV_PREFIX = "APPLENOTES_"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass(frozen=True)
class ConvertOptions:
    # Prefix notes/drawings carrying a handwriting summary with a callout
    include_handwriting: bool = False

    # Embed attachments as ![[path]] (Obsidian) instead of ![](path)
    wiki_links: bool = True

    # Emit <span style="font-size:..."> for runs with an explicit point size
    include_font_size: bool = True

    # Apple stores the title as the first line of the body
    omit_first_line: bool = False

    # Inline marker for attachments the datasource could not provide
    missing_attachment_template: str = "**Missing attachment: {identifier}**"

    def missing_attachment(self, identifier: Optional[str]) -> str:
        return self.missing_attachment_template.format(identifier=identifier or "?")

    @classmethod
    def from_env(cls, **overrides) -> "ConvertOptions":
        """Build options from ``APPLENOTES_*`` environment flags."""
        values = {}
        for f in fields(cls):
            if f.type not in ("bool", bool):
                continue
            values[f.name] = _env_flag(_ENV_PREFIX + f.name.upper(), f.default)
        values.update(overrides)
        return cls(**values)
