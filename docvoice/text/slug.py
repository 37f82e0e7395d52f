"""Deterministic slug helpers for filesystem-safe audio file stems.

Responsibilities:
- Normalize free-form file names and titles into stable ASCII stems.
- Keep slug behavior locale-independent for reproducible storage keys.
"""

from __future__ import annotations

import re
import unicodedata


def slugify_file_stem(value: str, fallback: str = "audio") -> str:
    """Return a filesystem-safe ASCII stem, keeping underscores as separators."""

    normalized = unicodedata.normalize("NFKD", value)
    ascii_only = normalized.encode("ascii", "ignore").decode("ascii")
    lowered = ascii_only.lower().strip()
    collapsed = re.sub(r"[^a-z0-9_]+", "-", lowered)
    slug = collapsed.strip("-_")
    return slug or fallback
