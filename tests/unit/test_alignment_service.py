"""Unit tests for uploaded-audio alignment with document paragraphs."""

from __future__ import annotations

from collections.abc import Callable
import io
from pathlib import Path
import wave

import pytest

from docvoice.audio import FixedLength, Manual
from docvoice.cache import BoundedTTLCache
from docvoice.errors import InputError, NotFoundError
from docvoice.io import JsonDocumentRepository
from docvoice.models import Document, MatchStrategy
from docvoice.services import AlignmentService, DocumentService
from docvoice.telemetry import RunLogger


class _FlakyStorage:
    """Storage double that fails for keys containing a marker."""

    def __init__(self, fail_marker: str) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self._fail_marker = fail_marker

    def store(self, data: bytes, key: str, content_type: str) -> str:
        if self._fail_marker in key:
            raise OSError("bucket unavailable")
        self.objects[key] = (data, content_type)
        return f"memory://{key}"


def _document(tmp_path: Path, paragraphs: int) -> tuple[Document, JsonDocumentRepository]:
    """Process a document with the given number of paragraphs."""

    repository = JsonDocumentRepository(tmp_path / "documents")
    service = DocumentService(repository, BoundedTTLCache())
    text = "\n\n".join(f"Paragraph number {index}." for index in range(1, paragraphs + 1))
    return service.process_document(text, title="Aligned"), repository


def _frames_in(data: bytes) -> int:
    """Return the frame count of an in-memory WAV payload."""

    with wave.open(io.BytesIO(data), "rb") as wav_file:
        return wav_file.getnframes()


def test_save_audio_writes_upload_and_probes_duration(
    tmp_path: Path,
    memory_storage,
    wav_bytes: Callable[..., bytes],
) -> None:  # type: ignore[no-untyped-def]
    """Uploads should be stored under a random name with probe details."""

    service = AlignmentService(
        JsonDocumentRepository(tmp_path / "documents"), memory_storage, tmp_path / "uploads"
    )

    path, url, info = service.save_audio(wav_bytes(4.0), "Recording.WAV")

    assert path.parent == tmp_path / "uploads"
    assert path.suffix == ".wav"
    assert len(path.stem) == 32
    assert url == f"/audio/uploads/{path.name}"
    assert info.duration_seconds == pytest.approx(4.0)


def test_align_defaults_to_one_range_per_paragraph(
    tmp_path: Path,
    memory_storage,
    write_wav: Callable[..., Path],
) -> None:  # type: ignore[no-untyped-def]
    """Without a strategy the track should be split evenly per paragraph."""

    document, repository = _document(tmp_path, 4)
    service = AlignmentService(repository, memory_storage, tmp_path / "uploads")

    report = service.align(document, write_wav("talk.wav", 8.0))

    assert report.strategy is MatchStrategy.ONE_TO_ONE
    assert report.needs_manual_adjustment is False
    assert [result.segment.start_time for result in report.results] == [0.0, 2.0, 4.0, 6.0]
    assert len(memory_storage.objects) == 4
    for key, (data, content_type) in memory_storage.objects.items():
        assert key.startswith(f"{document.id}_segment_")
        assert key.endswith(".wav")
        assert content_type.startswith("audio/")
        assert _frames_in(data) == 16_000

    stored = repository.get(document.id)
    assert all(paragraph.audio is not None for paragraph in stored.paragraphs)
    assert stored.paragraphs[1].audio.duration_seconds == pytest.approx(2.0)
    assert list((tmp_path / "uploads" / "segments").iterdir()) == []


def test_align_stored_merges_fixed_length_segments(
    tmp_path: Path,
    memory_storage,
    write_wav: Callable[..., Path],
) -> None:  # type: ignore[no-untyped-def]
    """Fifteen fixed-length ranges over ten paragraphs should merge and flag review."""

    document, repository = _document(tmp_path, 10)
    sink = io.StringIO()
    service = AlignmentService(
        repository,
        memory_storage,
        tmp_path / "uploads",
        run_logger=RunLogger(sink=sink),
    )

    report = service.align_stored(
        document.id, write_wav("talk.wav", 15.0), FixedLength(segment_seconds=1.0)
    )

    assert report.strategy is MatchStrategy.MERGE
    assert report.needs_manual_adjustment is True
    assert len(report.results) == 10
    assert report.results[0].segment.end_time == pytest.approx(2.0)
    assert report.results[-1].segment.start_time == pytest.approx(14.0)
    assert all(result.needs_manual_adjustment for result in report.results)
    assert "stage=align event=complete" in sink.getvalue()
    assert "stage=match event=start" in sink.getvalue()


def test_align_records_storage_failures_and_persists_partial_results(
    tmp_path: Path,
    write_wav: Callable[..., Path],
) -> None:  # type: ignore[no-untyped-def]
    """A failing pairing should be reported while other paragraphs get audio."""

    document, repository = _document(tmp_path, 3)
    storage = _FlakyStorage(fail_marker="_segment_2_")
    service = AlignmentService(repository, storage, tmp_path / "uploads")

    report = service.align(document, write_wav("talk.wav", 3.0))

    assert [result.paragraph_order for result in report.results] == [1, 3]
    assert [failure.paragraph_order for failure in report.failures] == [2]
    assert report.failures[0].error_type == "OSError"
    stored = repository.get(document.id)
    assert [paragraph.audio is not None for paragraph in stored.paragraphs] == [True, False, True]


def test_align_with_manual_ranges_and_invalid_ranges(
    tmp_path: Path,
    memory_storage,
    write_wav: Callable[..., Path],
) -> None:  # type: ignore[no-untyped-def]
    """Manual ranges should be honored and invalid ones rejected."""

    document, repository = _document(tmp_path, 2)
    service = AlignmentService(repository, memory_storage, tmp_path / "uploads")
    track = write_wav("talk.wav", 10.0)

    report = service.align(document, track, Manual(((0.0, 3.0), (5.0, 9.0))))

    assert [(r.segment.start_time, r.segment.end_time) for r in report.results] == [
        (0.0, 3.0),
        (5.0, 9.0),
    ]
    with pytest.raises(InputError):
        service.align(document, track, Manual(((0.0, 12.0),)))


def test_extract_segment_writes_scratch_file(
    tmp_path: Path,
    memory_storage,
    write_wav: Callable[..., Path],
) -> None:  # type: ignore[no-untyped-def]
    """Direct extraction should write the requested range under the segments directory."""

    service = AlignmentService(
        JsonDocumentRepository(tmp_path / "documents"), memory_storage, tmp_path / "uploads"
    )

    output = service.extract_segment(write_wav("talk.wav", 5.0), 1.0, 2.0, "clip.wav")

    assert output == tmp_path / "uploads" / "segments" / "clip.wav"
    assert _frames_in(output.read_bytes()) == 16_000


def test_align_stored_unknown_document_raises_not_found(
    tmp_path: Path,
    memory_storage,
    write_wav: Callable[..., Path],
) -> None:  # type: ignore[no-untyped-def]
    """Aligning an unknown id should raise before any audio work."""

    service = AlignmentService(
        JsonDocumentRepository(tmp_path / "documents"), memory_storage, tmp_path / "uploads"
    )

    with pytest.raises(NotFoundError):
        service.align_stored("missing", write_wav("talk.wav", 1.0))
