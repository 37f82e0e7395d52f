"""Audio segment planning from total duration and a slicing strategy.

Responsibilities:
- Propose ordered, non-overlapping time ranges covering `[0, total_duration]`.
- Dispatch exhaustively over the supported segmentation strategies.

Notes:
- Planning assumes uniform time distribution; no acoustic analysis is done.
- Range boundaries are computed from the total rather than accumulated, so
  consecutive ranges share exact float boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import assert_never

from ..errors import InputError
from ..models.datatypes import AudioSegment


@dataclass(frozen=True, slots=True)
class FixedCount:
    """Split the track into `count` equal ranges."""

    count: int


@dataclass(frozen=True, slots=True)
class FixedLength:
    """Split the track into ranges of `segment_seconds`, clipping the last one."""

    segment_seconds: float = 30.0


@dataclass(frozen=True, slots=True)
class Manual:
    """Use caller-supplied `(start, end)` ranges after validation."""

    boundaries: tuple[tuple[float, float], ...]


SegmentationStrategy = FixedCount | FixedLength | Manual


class AudioSegmentPlanner:
    """Plan deterministic audio time ranges for one track."""

    def plan(
        self,
        total_duration: float,
        strategy: SegmentationStrategy,
    ) -> list[AudioSegment]:
        """Return ordered time ranges for the given duration and strategy."""

        if total_duration < 0 or math.isnan(total_duration):
            raise InputError("total_duration must be a non-negative number of seconds.")

        match strategy:
            case FixedCount(count=count):
                return self._plan_fixed_count(total_duration, count)
            case FixedLength(segment_seconds=segment_seconds):
                return self._plan_fixed_length(total_duration, segment_seconds)
            case Manual(boundaries=boundaries):
                return self._plan_manual(total_duration, boundaries)
            case _:
                assert_never(strategy)

    def _plan_fixed_count(self, total_duration: float, count: int) -> list[AudioSegment]:
        """Split duration into `count` contiguous ranges of equal length."""

        if count < 0:
            raise InputError("Segment count must be zero or a positive integer.")
        if count == 0 or total_duration == 0:
            return []

        boundaries = [min(total_duration * index / count, total_duration) for index in range(count)]
        boundaries.append(total_duration)
        return self._ranges_from_boundaries(boundaries)

    def _plan_fixed_length(
        self,
        total_duration: float,
        segment_seconds: float,
    ) -> list[AudioSegment]:
        """Split duration into fixed-length ranges with a clipped final range."""

        if segment_seconds <= 0 or math.isnan(segment_seconds):
            raise InputError("Segment length must be a positive number of seconds.")
        if total_duration == 0:
            return []

        count = math.ceil(total_duration / segment_seconds)
        boundaries = [
            segment_seconds * index
            for index in range(count)
            if segment_seconds * index < total_duration
        ]
        boundaries.append(total_duration)
        return self._ranges_from_boundaries(boundaries)

    def _plan_manual(
        self,
        total_duration: float,
        boundaries: tuple[tuple[float, float], ...],
    ) -> list[AudioSegment]:
        """Validate caller-supplied ranges and return them as segments."""

        segments: list[AudioSegment] = []
        previous_end = 0.0
        for index, (start, end) in enumerate(boundaries, start=1):
            if start < previous_end:
                raise InputError(
                    f"Manual range {index} starts at {start} before the previous end {previous_end}."
                )
            if end <= start:
                raise InputError(f"Manual range {index} must have a positive length.")
            if end > total_duration:
                raise InputError(
                    f"Manual range {index} ends at {end}, beyond total duration {total_duration}."
                )
            segments.append(AudioSegment(start_time=float(start), end_time=float(end)))
            previous_end = end
        return segments

    @staticmethod
    def _ranges_from_boundaries(boundaries: list[float]) -> list[AudioSegment]:
        """Build back-to-back ranges from an ascending boundary list."""

        return [
            AudioSegment(start_time=start, end_time=end)
            for start, end in zip(boundaries, boundaries[1:])
        ]
