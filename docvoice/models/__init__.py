"""Shared typed data models for Docvoice.

This package contains dataclasses used across segmentation, matching, and
service modules to avoid cross-module coupling and circular imports.
"""

from .datatypes import (
    AudioInfo,
    AudioReference,
    AudioSegment,
    BatchOutcome,
    Document,
    DocumentType,
    MatchReport,
    MatchResult,
    MatchStrategy,
    MaterializedAudio,
    Paragraph,
    ParagraphAudio,
    ParagraphFailure,
    SegmentAssignment,
    SpeechResult,
)

__all__ = [
    "AudioInfo",
    "AudioReference",
    "AudioSegment",
    "BatchOutcome",
    "Document",
    "DocumentType",
    "MatchReport",
    "MatchResult",
    "MatchStrategy",
    "MaterializedAudio",
    "Paragraph",
    "ParagraphAudio",
    "ParagraphFailure",
    "SegmentAssignment",
    "SpeechResult",
]
