"""Paragraph-to-segment matching with count reconciliation.

Responsibilities:
- Reconcile P ordered paragraphs with S ordered time segments.
- Select one-to-one, merge, or split strategy from the relative count mismatch.
- Materialize each planned pairing sequentially with per-pairing failure capture.

Notes:
- One-to-one applies up to a mismatch ratio of 0.2, while the manual-review
  flag is only raised above 0.3. Ratios in (0.2, 0.3] run merge/split without
  being flagged.
- Merge and split groups are contiguous and balanced. Group sizes differ by
  at most one and never exceed the ceiling of the count ratio, so every
  paragraph receives exactly one range.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

from ..models.datatypes import (
    AudioSegment,
    MatchReport,
    MatchResult,
    MatchStrategy,
    MaterializedAudio,
    Paragraph,
    ParagraphFailure,
    SegmentAssignment,
)
from ..telemetry.logger import RunLogger


class SegmentMaterializer(Protocol):
    """Protocol for turning a planned pairing into a stored audio asset."""

    def materialize(self, assignment: SegmentAssignment) -> MaterializedAudio:
        """Produce one audio asset for the assignment's time range."""


@dataclass(frozen=True, slots=True)
class MatchPlan:
    """Pure matching plan before any audio is materialized."""

    strategy: MatchStrategy
    ratio: float
    needs_manual_adjustment: bool
    assignments: tuple[SegmentAssignment, ...]
    unmatched_paragraph_orders: tuple[int, ...] = field(default_factory=tuple)
    unmatched_segment_indices: tuple[int, ...] = field(default_factory=tuple)


class ParagraphSegmentMatcher:
    """Pair document paragraphs with audio time ranges."""

    ONE_TO_ONE_MAX_RATIO = 0.2
    MANUAL_REVIEW_MIN_RATIO = 0.3

    def __init__(self, run_logger: RunLogger | None = None) -> None:
        """Initialize optional structured logging for matching passes."""

        self._run_logger = run_logger

    @staticmethod
    def mismatch_ratio(paragraph_count: int, segment_count: int) -> float:
        """Return `|P - S| / max(P, S)`, or 0 when both counts are zero."""

        larger = max(paragraph_count, segment_count)
        if larger == 0:
            return 0.0
        return abs(paragraph_count - segment_count) / larger

    def select_strategy(self, paragraph_count: int, segment_count: int) -> MatchStrategy:
        """Select the reconciliation strategy for the given counts."""

        ratio = self.mismatch_ratio(paragraph_count, segment_count)
        if ratio <= self.ONE_TO_ONE_MAX_RATIO or paragraph_count == 0 or segment_count == 0:
            return MatchStrategy.ONE_TO_ONE
        if segment_count > paragraph_count:
            return MatchStrategy.MERGE
        return MatchStrategy.SPLIT

    def plan(
        self,
        paragraphs: Sequence[Paragraph],
        segments: Sequence[AudioSegment],
    ) -> MatchPlan:
        """Compute assignments without side effects."""

        ordered = sorted(paragraphs, key=lambda paragraph: paragraph.order)
        ratio = self.mismatch_ratio(len(ordered), len(segments))
        strategy = self.select_strategy(len(ordered), len(segments))
        needs_review = ratio > self.MANUAL_REVIEW_MIN_RATIO

        unmatched_paragraphs: tuple[int, ...] = ()
        unmatched_segments: tuple[int, ...] = ()
        if strategy is MatchStrategy.MERGE:
            assignments = self._plan_merge(ordered, segments)
        elif strategy is MatchStrategy.SPLIT:
            assignments = self._plan_split(ordered, segments)
        else:
            assignments, unmatched_paragraphs, unmatched_segments = self._plan_one_to_one(
                ordered, segments
            )

        return MatchPlan(
            strategy=strategy,
            ratio=ratio,
            needs_manual_adjustment=needs_review,
            assignments=assignments,
            unmatched_paragraph_orders=unmatched_paragraphs,
            unmatched_segment_indices=unmatched_segments,
        )

    def match(
        self,
        paragraphs: Sequence[Paragraph],
        segments: Sequence[AudioSegment],
        materializer: SegmentMaterializer,
    ) -> MatchReport:
        """Plan pairings and materialize each one, continuing past failures."""

        plan = self.plan(paragraphs, segments)
        self._log(
            "INFO",
            "start",
            paragraphs=len(paragraphs),
            segments=len(segments),
            strategy=plan.strategy.value,
            ratio=f"{plan.ratio:.4f}",
        )
        if plan.unmatched_paragraph_orders or plan.unmatched_segment_indices:
            self._log(
                "WARNING",
                "unmatched",
                paragraphs=len(plan.unmatched_paragraph_orders),
                segments=len(plan.unmatched_segment_indices),
            )

        outcomes: list[MatchResult | ParagraphFailure] = []
        for assignment in plan.assignments:
            paragraph = assignment.paragraph
            try:
                audio = materializer.materialize(assignment)
            except Exception as exc:
                self._log(
                    "ERROR",
                    "pairing_failure",
                    error_type=type(exc).__name__,
                    paragraph=paragraph.order,
                )
                outcomes.append(
                    ParagraphFailure(
                        paragraph_id=paragraph.id,
                        paragraph_order=paragraph.order,
                        error_type=type(exc).__name__,
                        detail=str(exc),
                    )
                )
                continue
            outcomes.append(
                MatchResult(
                    paragraph_id=paragraph.id,
                    paragraph_order=paragraph.order,
                    segment=assignment.segment,
                    audio=audio,
                    needs_manual_adjustment=plan.needs_manual_adjustment,
                )
            )

        report = MatchReport(
            strategy=plan.strategy,
            ratio=plan.ratio,
            needs_manual_adjustment=plan.needs_manual_adjustment,
            outcomes=tuple(outcomes),
            unmatched_paragraph_orders=plan.unmatched_paragraph_orders,
            unmatched_segment_indices=plan.unmatched_segment_indices,
        )
        self._log(
            "INFO",
            "complete",
            failed=len(report.failures),
            matched=len(report.results),
            needs_review=str(report.needs_manual_adjustment).lower(),
        )
        return report

    def _plan_one_to_one(
        self,
        paragraphs: Sequence[Paragraph],
        segments: Sequence[AudioSegment],
    ) -> tuple[tuple[SegmentAssignment, ...], tuple[int, ...], tuple[int, ...]]:
        """Pair by index and report leftovers on either side."""

        paired = min(len(paragraphs), len(segments))
        assignments = tuple(
            SegmentAssignment(
                paragraph=paragraphs[index],
                segment=segments[index],
                source_segment_indices=(index,),
            )
            for index in range(paired)
        )
        unmatched_paragraphs = tuple(paragraph.order for paragraph in paragraphs[paired:])
        unmatched_segments = tuple(range(paired, len(segments)))
        return assignments, unmatched_paragraphs, unmatched_segments

    @staticmethod
    def _group_bounds(item_count: int, group_count: int) -> list[tuple[int, int]]:
        """Partition `item_count` items into `group_count` contiguous non-empty groups.

        Leading groups hold `ceil(item_count / group_count)` items and later
        groups one fewer, so no group is empty when `item_count >= group_count`.
        """

        base, remainder = divmod(item_count, group_count)
        bounds: list[tuple[int, int]] = []
        start = 0
        for index in range(group_count):
            size = base + (1 if index < remainder else 0)
            bounds.append((start, start + size))
            start += size
        return bounds

    def _plan_merge(
        self,
        paragraphs: Sequence[Paragraph],
        segments: Sequence[AudioSegment],
    ) -> tuple[SegmentAssignment, ...]:
        """Assign one contiguous run of segments to each paragraph."""

        assignments: list[SegmentAssignment] = []
        for paragraph, (group_start, group_end) in zip(
            paragraphs, self._group_bounds(len(segments), len(paragraphs))
        ):
            merged = AudioSegment(
                start_time=segments[group_start].start_time,
                end_time=segments[group_end - 1].end_time,
            )
            assignments.append(
                SegmentAssignment(
                    paragraph=paragraph,
                    segment=merged,
                    source_segment_indices=tuple(range(group_start, group_end)),
                )
            )
        return tuple(assignments)

    def _plan_split(
        self,
        paragraphs: Sequence[Paragraph],
        segments: Sequence[AudioSegment],
    ) -> tuple[SegmentAssignment, ...]:
        """Subdivide each segment evenly across its contiguous group of paragraphs."""

        assignments: list[SegmentAssignment] = []
        for segment_index, (group_start, group_end) in enumerate(
            self._group_bounds(len(paragraphs), len(segments))
        ):
            segment = segments[segment_index]
            group = paragraphs[group_start:group_end]
            for position, paragraph in enumerate(group):
                start = segment.start_time + segment.duration * position / len(group)
                if position == len(group) - 1:
                    end = segment.end_time
                else:
                    end = segment.start_time + segment.duration * (position + 1) / len(group)
                assignments.append(
                    SegmentAssignment(
                        paragraph=paragraph,
                        segment=AudioSegment(start_time=start, end_time=end),
                        source_segment_indices=(segment_index,),
                    )
                )
        return tuple(assignments)

    def _log(self, level: str, event: str, **context: object) -> None:
        """Emit one matcher-scoped event when a run logger is configured."""

        if self._run_logger is not None:
            self._run_logger.log_event(level, event, "match", **context)
