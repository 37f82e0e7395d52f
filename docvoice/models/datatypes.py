"""Core datatypes shared across Docvoice modules.

Responsibilities:
- Represent documents, paragraphs, and attached audio references.
- Represent audio time ranges and paragraph-to-audio matching outcomes.
- Provide explicit typing for persistence and CLI rendering.

Key types:
- `DocumentType`, `Document`, `Paragraph`, `AudioReference`, `AudioSegment`,
  `AudioInfo`, `SegmentAssignment`, `MatchResult`, `ParagraphFailure`,
  `MatchReport`, `ParagraphAudio`, `BatchOutcome`, and `SpeechResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class DocumentType(str, Enum):
    """Declared source type of an ingested document."""

    TEXT = "text"
    PDF = "pdf"
    WORD = "word"


class MatchStrategy(str, Enum):
    """Paragraph/segment count reconciliation policy selected by the matcher."""

    ONE_TO_ONE = "one_to_one"
    MERGE = "merge"
    SPLIT = "split"


@dataclass(frozen=True, slots=True)
class AudioReference:
    """Audio asset attached to one paragraph.

    Attributes:
        url: Durable URL returned by the storage collaborator.
        file_name: Stored file name or key without directory components.
        duration_seconds: Known or estimated audio duration.
    """

    url: str
    file_name: str
    duration_seconds: float


@dataclass(slots=True)
class Paragraph:
    """One blank-line separated block of document text.

    Attributes:
        id: Stable generated identifier.
        order: 1-based position in the owning document.
        content: Trimmed paragraph text.
        word_count: Count of tokens containing at least one Latin letter.
        sentences: Heuristically split sentences in source order.
        audio: Attached audio reference, or `None` until synthesis/matching succeeds.
    """

    id: str
    order: int
    content: str
    word_count: int
    sentences: tuple[str, ...]
    audio: AudioReference | None = None


@dataclass(slots=True)
class Document:
    """A parsed document with aggregate counts and ordered paragraphs.

    Attributes:
        id: Stable generated identifier.
        title: Human-readable title.
        content: Normalized document text.
        type: Declared source type.
        word_count: Sum of paragraph word counts.
        sentence_count: Sum of paragraph sentence counts.
        paragraph_count: Number of paragraphs.
        paragraphs: Paragraphs ordered `1..paragraph_count`.
        created_at: Parse timestamp.
    """

    id: str
    title: str
    content: str
    type: DocumentType
    word_count: int
    sentence_count: int
    paragraph_count: int
    paragraphs: list[Paragraph]
    created_at: datetime

    def paragraph_by_order(self, order: int) -> Paragraph:
        """Return the paragraph with the given 1-based order index."""

        if order < 1 or order > len(self.paragraphs):
            raise IndexError(f"Paragraph order {order} is outside 1..{len(self.paragraphs)}.")
        return self.paragraphs[order - 1]


@dataclass(frozen=True, slots=True)
class AudioSegment:
    """A contiguous time range within an audio track, in seconds."""

    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        """Return the range length."""

        return self.end_time - self.start_time


@dataclass(frozen=True, slots=True)
class AudioInfo:
    """Basic properties of a stored audio file."""

    duration_seconds: float
    format: str
    sample_rate: int
    channels: int


@dataclass(frozen=True, slots=True)
class SegmentAssignment:
    """A planned pairing of one paragraph with one audio time range.

    Attributes:
        paragraph: Target paragraph.
        segment: Time range assigned to the paragraph.
        source_segment_indices: 0-based indices of the planner segments that
            produced this range.
    """

    paragraph: Paragraph
    segment: AudioSegment
    source_segment_indices: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class MaterializedAudio:
    """Audio asset produced for one assignment."""

    url: str
    file_name: str
    duration_seconds: float
    order: int


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Successful pairing of a paragraph with a materialized audio asset."""

    paragraph_id: str
    paragraph_order: int
    segment: AudioSegment
    audio: MaterializedAudio
    needs_manual_adjustment: bool


@dataclass(frozen=True, slots=True)
class ParagraphFailure:
    """Recorded failure for one paragraph in a batch or matching pass."""

    paragraph_id: str
    paragraph_order: int
    error_type: str
    detail: str


@dataclass(frozen=True, slots=True)
class MatchReport:
    """Outcome of one paragraph/segment matching pass.

    Attributes:
        strategy: Reconciliation policy that was applied.
        ratio: `|P - S| / max(P, S)` for the input counts.
        needs_manual_adjustment: Whether the count mismatch warrants review.
        outcomes: Per-assignment results in paragraph order.
        unmatched_paragraph_orders: Paragraphs that received no assignment.
        unmatched_segment_indices: Planner segments that were not assigned.
    """

    strategy: MatchStrategy
    ratio: float
    needs_manual_adjustment: bool
    outcomes: tuple[MatchResult | ParagraphFailure, ...]
    unmatched_paragraph_orders: tuple[int, ...] = field(default_factory=tuple)
    unmatched_segment_indices: tuple[int, ...] = field(default_factory=tuple)

    @property
    def results(self) -> tuple[MatchResult, ...]:
        """Return successful pairings only."""

        return tuple(item for item in self.outcomes if isinstance(item, MatchResult))

    @property
    def failures(self) -> tuple[ParagraphFailure, ...]:
        """Return failed pairings only."""

        return tuple(item for item in self.outcomes if isinstance(item, ParagraphFailure))


@dataclass(frozen=True, slots=True)
class ParagraphAudio:
    """Successful synthesis result for one paragraph."""

    paragraph_id: str
    paragraph_order: int
    audio: AudioReference


@dataclass(frozen=True, slots=True)
class BatchOutcome:
    """Per-paragraph outcomes of a document-wide synthesis batch."""

    document: Document
    outcomes: tuple[ParagraphAudio | ParagraphFailure, ...]

    @property
    def succeeded(self) -> tuple[ParagraphAudio, ...]:
        """Return paragraphs that received audio."""

        return tuple(item for item in self.outcomes if isinstance(item, ParagraphAudio))

    @property
    def failed(self) -> tuple[ParagraphFailure, ...]:
        """Return paragraphs that were left without audio."""

        return tuple(item for item in self.outcomes if isinstance(item, ParagraphFailure))


@dataclass(frozen=True, slots=True)
class SpeechResult:
    """Stored synthesis output for one text request."""

    audio_url: str
    file_name: str
    duration_seconds: float
    voice_id: str
    output_format: str
    original_text: str
    created_at: datetime
