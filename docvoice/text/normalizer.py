"""Deterministic text normalization rules.

Responsibilities:
- Provide composable whitespace rules for extracted document text.
- Keep normalization idempotent so cached and re-parsed content agree.
"""

from __future__ import annotations

import re
from typing import Protocol


class NormalizationRule(Protocol):
    """Protocol for text normalization rules."""

    def apply(self, text: str) -> str:
        """Apply a single normalization transformation."""


class UnifyLineEndings:
    """Convert Windows and classic Mac line endings to `\\n`."""

    def apply(self, text: str) -> str:
        """Replace `\\r\\n` and lone `\\r` with `\\n`."""

        return text.replace("\r\n", "\n").replace("\r", "\n")


class CollapseBlankLines:
    """Collapse three or more consecutive newlines into one paragraph break."""

    _BLANK_RUN_RE = re.compile(r"\n{3,}")

    def apply(self, text: str) -> str:
        """Replace newline runs longer than two with exactly two newlines."""

        return self._BLANK_RUN_RE.sub("\n\n", text)


class CollapseInlineWhitespace:
    """Collapse runs of spaces and tabs into a single space."""

    _INLINE_RUN_RE = re.compile(r"[ \t]+")

    def apply(self, text: str) -> str:
        """Replace space/tab runs with one space."""

        return self._INLINE_RUN_RE.sub(" ", text)


class TextNormalizer:
    """Apply an ordered sequence of normalization rules and trim the result."""

    def __init__(self, rules: list[NormalizationRule] | None = None) -> None:
        """Initialize with custom rules or the default rule sequence."""

        self.rules = rules or [
            UnifyLineEndings(),
            CollapseBlankLines(),
            CollapseInlineWhitespace(),
        ]

    def normalize(self, text: str) -> str:
        """Normalize text for downstream paragraph and sentence splitting."""

        current = text
        for rule in self.rules:
            current = rule.apply(current)
        return current.strip()


def normalize_text(text: str) -> str:
    """Normalize text with the default rule sequence."""

    return TextNormalizer().normalize(text)
