"""Paragraph and sentence segmentation for ingested documents.

Responsibilities:
- Split normalized text into blank-line separated paragraphs.
- Split paragraphs into sentences with a punctuation/uppercase heuristic.
- Build `Document` records with stable identifiers and aggregate counts.

Notes:
- Sentence splitting is heuristic: abbreviations, decimals followed by an
  uppercase word, and scripts without Latin capitals are not handled.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
import re
from uuid import uuid4

from ..models.datatypes import Document, DocumentType, Paragraph
from .normalizer import TextNormalizer

_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")
_SENTENCE_BREAK_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")
_LATIN_LETTER_RE = re.compile(r"[A-Za-z]")


def split_paragraphs(text: str) -> list[str]:
    """Split text on blank lines and drop empty paragraphs."""

    paragraphs = (part.strip() for part in _PARAGRAPH_BREAK_RE.split(text))
    return [paragraph for paragraph in paragraphs if paragraph]


def split_sentences(paragraph: str) -> list[str]:
    """Split one paragraph after `.`, `!`, or `?` followed by an uppercase letter."""

    sentences = (part.strip() for part in _SENTENCE_BREAK_RE.split(paragraph))
    return [sentence for sentence in sentences if sentence]


def count_words(text: str) -> int:
    """Count whitespace tokens that contain at least one Latin letter."""

    return sum(1 for token in text.split() if _LATIN_LETTER_RE.search(token))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class TextSegmenter:
    """Turn raw text into a structured `Document` with paragraph breakdown."""

    def __init__(
        self,
        normalizer: TextNormalizer | None = None,
        id_factory: Callable[[], str] = _new_id,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize segmenter collaborators with deterministic test hooks."""

        self.normalizer = normalizer or TextNormalizer()
        self._id_factory = id_factory
        self._clock = clock

    def segment(
        self,
        text: str,
        *,
        document_type: DocumentType = DocumentType.TEXT,
        title: str | None = None,
    ) -> Document:
        """Parse text into a document; empty input yields zero paragraphs."""

        content = self.normalizer.normalize(text)
        paragraphs = self.build_paragraphs(content)
        created_at = self._clock()
        resolved_title = title.strip() if title and title.strip() else None
        if resolved_title is None:
            resolved_title = f"Document_{int(created_at.timestamp() * 1000)}"

        return Document(
            id=self._id_factory(),
            title=resolved_title,
            content=content,
            type=document_type,
            word_count=sum(paragraph.word_count for paragraph in paragraphs),
            sentence_count=sum(len(paragraph.sentences) for paragraph in paragraphs),
            paragraph_count=len(paragraphs),
            paragraphs=paragraphs,
            created_at=created_at,
        )

    def build_paragraphs(self, content: str) -> list[Paragraph]:
        """Build ordered paragraph records from already-normalized content."""

        return [
            Paragraph(
                id=self._id_factory(),
                order=index,
                content=paragraph_text,
                word_count=count_words(paragraph_text),
                sentences=tuple(split_sentences(paragraph_text)),
            )
            for index, paragraph_text in enumerate(split_paragraphs(content), start=1)
        ]
