from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict


def _env_extra_mode(default: str = "ignore") -> str:
    """
    Determine the extra-mode from environment vars.

    APPLENOTES_EXTRA: allow|forbid|ignore
    Convenience booleans: "true/1/on" -> forbid (strict), "false/0/off" -> allow
    """
    raw = (os.getenv("APPLENOTES_EXTRA") or default).strip().lower()

    if raw in {"allow", "forbid", "ignore"}:
        return raw

    if raw in {"1", "true", "yes", "on", "strict"}:
        return "forbid"
    if raw in {"0", "false", "no", "off", "lenient"}:
        return "allow"

    return default


_EXTRA = _env_extra_mode()


class NotesModel(BaseModel):
    """
    Project-wide base model for records handed over by collaborators.

    Row-fetch tooling usually passes whole database rows, so unknown keys are
    ignored by default; set an env var before import to tighten that:
      export APPLENOTES_EXTRA=forbid   # or allow/ignore
    """

    model_config = ConfigDict(extra=_EXTRA)


__all__ = ["NotesModel", "_env_extra_mode"]
