"""Paragraph/audio alignment service.

Responsibilities:
- Save uploaded source audio and probe its duration.
- Plan time ranges for a track and pair them with document paragraphs.
- Extract and store one audio file per pairing, then persist the document.
"""

from __future__ import annotations

import mimetypes
from pathlib import Path
from uuid import uuid4

from ..audio.extractor import SegmentExtractor
from ..audio.matcher import ParagraphSegmentMatcher
from ..audio.planner import AudioSegmentPlanner, FixedCount, SegmentationStrategy
from ..audio.probe import AudioProbe
from ..io.repository import JsonDocumentRepository
from ..io.storage import AudioStorage
from ..models import (
    AudioInfo,
    AudioReference,
    AudioSegment,
    Document,
    MatchReport,
    MaterializedAudio,
    SegmentAssignment,
)
from ..telemetry.logger import RunLogger


def _content_type_for(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


class ExtractingMaterializer:
    """Materialize pairings by extracting a file per range and storing it."""

    def __init__(
        self,
        document_id: str,
        source_path: Path,
        extractor: SegmentExtractor,
        storage: AudioStorage,
    ) -> None:
        """Bind the source track and collaborators for one alignment pass."""

        self.document_id = document_id
        self.source_path = source_path
        self.extractor = extractor
        self.storage = storage

    def materialize(self, assignment: SegmentAssignment) -> MaterializedAudio:
        """Extract the assignment's range and return the stored audio reference."""

        order = assignment.paragraph.order
        extension = self.source_path.suffix.lower() or ".mp3"
        file_name = f"{self.document_id}_segment_{order}_{uuid4().hex}{extension}"
        extracted = self.extractor.extract(self.source_path, assignment.segment, file_name)
        try:
            url = self.storage.store(extracted.read_bytes(), file_name, _content_type_for(extracted))
        finally:
            extracted.unlink(missing_ok=True)
        return MaterializedAudio(
            url=url,
            file_name=file_name,
            duration_seconds=assignment.segment.duration,
            order=order,
        )


class AlignmentService:
    """Align an uploaded audio track with the paragraphs of a stored document."""

    def __init__(
        self,
        repository: JsonDocumentRepository,
        storage: AudioStorage,
        upload_dir: Path,
        *,
        probe: AudioProbe | None = None,
        planner: AudioSegmentPlanner | None = None,
        matcher: ParagraphSegmentMatcher | None = None,
        run_logger: RunLogger | None = None,
        upload_url_prefix: str = "/audio/uploads",
    ) -> None:
        """Initialize collaborators and the local upload directory."""

        self.repository = repository
        self.storage = storage
        self.upload_dir = upload_dir
        self.probe = probe or AudioProbe()
        self.planner = planner or AudioSegmentPlanner()
        self.matcher = matcher or ParagraphSegmentMatcher(run_logger=run_logger)
        self.run_logger = run_logger
        self.upload_url_prefix = upload_url_prefix.rstrip("/")
        self.extractor = SegmentExtractor(upload_dir / "segments")

    def save_audio(self, data: bytes, original_name: str) -> tuple[Path, str, AudioInfo]:
        """Write uploaded audio as `<uuid><ext>` and return path, URL, and probe info."""

        extension = Path(original_name).suffix.lower()
        file_name = f"{uuid4().hex}{extension}"
        path = self.upload_dir / file_name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        info = self.probe_audio(path)
        self._log("INFO", "saved", file=file_name, duration=f"{info.duration_seconds:.3f}")
        return path, f"{self.upload_url_prefix}/{file_name}", info

    def probe_audio(self, path: Path) -> AudioInfo:
        """Return duration and format details for a stored audio file."""

        return self.probe.probe(path)

    def extract_segment(
        self,
        source_path: Path,
        start_time: float,
        duration: float,
        output_name: str,
    ) -> Path:
        """Extract `[start_time, start_time + duration]` into a scratch file."""

        segment = AudioSegment(start_time=start_time, end_time=start_time + duration)
        return self.extractor.extract(source_path, segment, output_name)

    def align(
        self,
        document: Document,
        audio_path: Path,
        strategy: SegmentationStrategy | None = None,
    ) -> MatchReport:
        """Pair the document's paragraphs with ranges of the audio track.

        Successful pairings attach their stored audio to the paragraph; the
        document is persisted even when some pairings fail.
        """

        info = self.probe_audio(audio_path)
        resolved_strategy = strategy or FixedCount(document.paragraph_count)
        segments = self.planner.plan(info.duration_seconds, resolved_strategy)
        self._log(
            "INFO",
            "start",
            document=document.id,
            duration=f"{info.duration_seconds:.3f}",
            segments=len(segments),
        )

        materializer = ExtractingMaterializer(document.id, audio_path, self.extractor, self.storage)
        report = self.matcher.match(document.paragraphs, segments, materializer)
        for result in report.results:
            paragraph = document.paragraph_by_order(result.paragraph_order)
            paragraph.audio = AudioReference(
                url=result.audio.url,
                file_name=result.audio.file_name,
                duration_seconds=result.audio.duration_seconds,
            )
        self.repository.save(document)
        self._log(
            "INFO",
            "complete",
            document=document.id,
            failed=len(report.failures),
            matched=len(report.results),
            strategy=report.strategy.value,
        )
        return report

    def align_stored(
        self,
        document_id: str,
        audio_path: Path,
        strategy: SegmentationStrategy | None = None,
    ) -> MatchReport:
        """Load a stored document by id and align it with the audio track."""

        return self.align(self.repository.get(document_id), audio_path, strategy)

    def _log(self, level: str, event: str, **context: object) -> None:
        if self.run_logger is not None:
            self.run_logger.log_event(level, event, "align", **context)
