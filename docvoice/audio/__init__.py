"""Audio planning, matching, probing, and segment extraction components.

This package turns an audio track's duration into time ranges and pairs them
with document paragraphs.
"""

from .extractor import SegmentExtractor
from .matcher import MatchPlan, ParagraphSegmentMatcher, SegmentMaterializer
from .planner import (
    AudioSegmentPlanner,
    FixedCount,
    FixedLength,
    Manual,
    SegmentationStrategy,
)
from .probe import AudioProbe, estimate_speech_duration

__all__ = [
    "AudioProbe",
    "AudioSegmentPlanner",
    "FixedCount",
    "FixedLength",
    "Manual",
    "MatchPlan",
    "ParagraphSegmentMatcher",
    "SegmentExtractor",
    "SegmentMaterializer",
    "SegmentationStrategy",
    "estimate_speech_duration",
]
