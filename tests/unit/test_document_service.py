"""Unit tests for document processing, paragraph audio batches, and lookups."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
import io
from itertools import count
from pathlib import Path

import pytest

from docvoice.cache import BoundedTTLCache
from docvoice.errors import DocumentParseError, InputError, NotFoundError
from docvoice.io import JsonDocumentRepository
from docvoice.models import DocumentType, ParagraphAudio, ParagraphFailure
from docvoice.services import DocumentService, SpeechService
from docvoice.telemetry import RunLogger
from docvoice.text import TextSegmenter

_FIVE_PARAGRAPHS = "\n\n".join(
    [
        "Alpha paragraph here.",
        "Bravo paragraph here.",
        "Charlie paragraph fails.",
        "Delta paragraph here.",
        "Echo paragraph here.",
    ]
)


def _ticking_clock() -> Callable[[], datetime]:
    """Return a clock advancing one minute per call."""

    ticks = count()
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return lambda: start + timedelta(minutes=next(ticks))


def _service(
    tmp_path: Path,
    synthesizer: object | None = None,
    storage: object | None = None,
    **overrides: object,
) -> DocumentService:
    """Build a document service over a temporary repository."""

    cache = BoundedTTLCache()
    speech = None
    if synthesizer is not None and storage is not None:
        speech = SpeechService(synthesizer, storage, cache)
    return DocumentService(
        JsonDocumentRepository(tmp_path / "documents"),
        cache,
        segmenter=TextSegmenter(clock=_ticking_clock()),
        speech_service=speech,
        **overrides,
    )


def test_process_document_segments_and_persists(tmp_path: Path) -> None:
    """Processing should return a segmented document and save it."""

    service = _service(tmp_path)

    document = service.process_document("Hello world. This is a test.", title="Greeting")

    assert document.title == "Greeting"
    assert document.paragraph_count == 1
    assert document.word_count == 6
    assert service.get_document(document.id) == document


def test_process_document_reuses_cached_parse(tmp_path: Path) -> None:
    """Identical content and type should return the cached document."""

    sink = io.StringIO()
    service = _service(tmp_path, run_logger=RunLogger(sink=sink))

    first = service.process_document("Same text.")
    second = service.process_document("Same text.")
    as_pdf = service.process_document("Same text.", DocumentType.PDF)

    assert second is first
    assert as_pdf.id != first.id
    assert "stage=document event=cache_hit" in sink.getvalue()


def test_process_document_resaves_cached_document_after_deletion(tmp_path: Path) -> None:
    """A cache hit for a deleted document should restore it in the repository."""

    service = _service(tmp_path)
    document = service.process_document("Persist me.")
    service.delete_document(document.id)

    restored = service.process_document("Persist me.")

    assert restored.id == document.id
    assert service.get_document(document.id).id == document.id


def test_process_document_enforces_maximum_length(tmp_path: Path) -> None:
    """Content over the configured limit should be rejected."""

    service = _service(tmp_path, max_text_length=10)

    with pytest.raises(InputError, match="too long"):
        service.process_document("x" * 11)
    assert service.process_document("x" * 10).paragraph_count == 1


def test_process_document_with_audio_continues_past_failing_paragraph(
    tmp_path: Path,
    fake_synthesizer_factory,
    memory_storage,
) -> None:  # type: ignore[no-untyped-def]
    """One failing paragraph should not prevent audio for the other four."""

    synthesizer = fake_synthesizer_factory(fail_when=lambda text: "fails" in text)
    service = _service(tmp_path, synthesizer, memory_storage)

    outcome = service.process_document_with_audio(_FIVE_PARAGRAPHS, title="Batch")

    assert [call[0] for call in synthesizer.calls] == [
        paragraph.content for paragraph in outcome.document.paragraphs
    ]
    assert len(outcome.succeeded) == 4
    assert len(outcome.failed) == 1
    failure = outcome.failed[0]
    assert isinstance(failure, ParagraphFailure)
    assert failure.paragraph_order == 3
    assert failure.error_type == "SynthesisError"
    assert all(isinstance(item, ParagraphAudio) for item in outcome.succeeded)

    stored = service.get_document(outcome.document.id)
    with_audio = [paragraph.order for paragraph in stored.paragraphs if paragraph.audio]
    assert with_audio == [1, 2, 4, 5]
    assert stored.paragraphs[0].audio.file_name == f"{outcome.document.id}_paragraph_1.mp3"
    assert f"{outcome.document.id}_paragraph_1.mp3" in memory_storage.objects


def test_repeated_batch_clears_audio_for_paragraph_that_now_fails(
    tmp_path: Path,
    fake_synthesizer_factory,
    memory_storage,
) -> None:  # type: ignore[no-untyped-def]
    """A paragraph failing on a later batch should not keep its earlier audio."""

    failing = {"enabled": False}
    synthesizer = fake_synthesizer_factory(
        fail_when=lambda text: failing["enabled"] and "fails" in text
    )
    service = _service(tmp_path, synthesizer, memory_storage)
    first = service.process_document_with_audio(_FIVE_PARAGRAPHS, title="Batch")
    assert len(first.succeeded) == 5

    failing["enabled"] = True
    second = service.process_document_with_audio(
        _FIVE_PARAGRAPHS, title="Batch", output_format="ogg_vorbis"
    )

    assert second.document.id == first.document.id
    assert [item.paragraph_order for item in second.failed] == [3]
    assert second.document.paragraphs[2].audio is None
    stored = service.get_document(second.document.id)
    assert [paragraph.order for paragraph in stored.paragraphs if paragraph.audio] == [1, 2, 4, 5]
    assert stored.paragraphs[0].audio.file_name.endswith("_paragraph_1.ogg")


def test_process_document_with_audio_can_skip_generation(
    tmp_path: Path,
    fake_synthesizer,
    memory_storage,
) -> None:  # type: ignore[no-untyped-def]
    """Disabling audio should only process the document."""

    service = _service(tmp_path, fake_synthesizer, memory_storage)

    outcome = service.process_document_with_audio(_FIVE_PARAGRAPHS, generate_audio=False)

    assert outcome.outcomes == ()
    assert fake_synthesizer.calls == []


def test_process_document_with_audio_requires_speech_service(tmp_path: Path) -> None:
    """Audio generation without a speech service should be an input error."""

    with pytest.raises(InputError, match="speech service"):
        _service(tmp_path).process_document_with_audio("Hello.")


def test_ingest_file_uses_file_stem_title_and_extension_type(tmp_path: Path) -> None:
    """Ingested files should default the title to the file stem."""

    source = tmp_path / "meeting-notes.md"
    source.write_text("First point.\n\nSecond point.", encoding="utf-8")

    document = _service(tmp_path).ingest_file(source)

    assert document.title == "meeting-notes"
    assert document.type is DocumentType.TEXT
    assert document.paragraph_count == 2


def test_ingest_file_with_audio_synthesizes_each_paragraph(
    tmp_path: Path,
    fake_synthesizer,
    memory_storage,
) -> None:  # type: ignore[no-untyped-def]
    """File ingestion with audio should produce one stored file per paragraph."""

    source = tmp_path / "notes.txt"
    source.write_text("One.\n\nTwo.", encoding="utf-8")

    outcome = _service(tmp_path, fake_synthesizer, memory_storage).ingest_file_with_audio(
        source, title="Notes", voice_id="Matthew"
    )

    assert len(outcome.succeeded) == 2
    assert {call[1] for call in fake_synthesizer.calls} == {"Matthew"}


def test_ingest_file_reports_missing_files(tmp_path: Path) -> None:
    """Missing input files should raise parse errors."""

    with pytest.raises(DocumentParseError, match="not found"):
        _service(tmp_path).ingest_file(tmp_path / "missing.txt")


def test_list_documents_pages_newest_first_and_validates_arguments(tmp_path: Path) -> None:
    """Listing should be 1-based, newest first, and reject invalid paging."""

    service = _service(tmp_path)
    ids = [service.process_document(f"Document number {index}.").id for index in range(3)]

    page_one, total = service.list_documents(page=1, limit=2)
    page_two, _ = service.list_documents(page=2, limit=2)

    assert total == 3
    assert [document.id for document in page_one] == [ids[2], ids[1]]
    assert [document.id for document in page_two] == [ids[0]]
    with pytest.raises(InputError, match="page"):
        service.list_documents(page=0)
    with pytest.raises(InputError, match="limit"):
        service.list_documents(limit=0)


def test_delete_document_removes_it_and_unknown_ids_raise(tmp_path: Path) -> None:
    """Deleted documents should no longer be retrievable."""

    service = _service(tmp_path)
    document = service.process_document("Delete me.")

    service.delete_document(document.id)

    with pytest.raises(NotFoundError):
        service.get_document(document.id)
    with pytest.raises(NotFoundError):
        service.delete_document(document.id)


def test_cached_document_keeps_first_title(tmp_path: Path) -> None:
    """Reprocessing identical content should return the first parse and its title."""

    service = _service(tmp_path)

    first = service.process_document("Same text.", title="First")
    second = service.process_document("Same text.", title="Second")

    assert second is first
    assert second.title == "First"
