"""Document processing service.

Responsibilities:
- Parse text into documents with caching and persistence.
- Ingest text, PDF, and Word files through the document extractor.
- Generate per-paragraph audio sequentially, continuing past failures.
- Provide document lookup, paged listing, and deletion.
"""

from __future__ import annotations

from pathlib import Path

from ..cache import Cache, make_cache_key
from ..errors import InputError
from ..io.document_extractor import DocumentExtractor, resolve_document_type
from ..io.repository import JsonDocumentRepository
from ..models import (
    AudioReference,
    BatchOutcome,
    Document,
    DocumentType,
    ParagraphAudio,
    ParagraphFailure,
)
from ..telemetry.logger import RunLogger
from ..text.segmenter import TextSegmenter
from ..tts.voices import OutputFormat
from .speech_service import SpeechService

MAX_PAGE_LIMIT = 100


class DocumentService:
    """Coordinate segmentation, caching, persistence, and paragraph audio."""

    def __init__(
        self,
        repository: JsonDocumentRepository,
        cache: Cache,
        *,
        segmenter: TextSegmenter | None = None,
        extractor: DocumentExtractor | None = None,
        speech_service: SpeechService | None = None,
        run_logger: RunLogger | None = None,
        max_text_length: int = 50_000,
    ) -> None:
        """Initialize collaborators; `speech_service` is required only for audio."""

        self.repository = repository
        self.cache = cache
        self.segmenter = segmenter or TextSegmenter()
        self.extractor = extractor or DocumentExtractor()
        self.speech_service = speech_service
        self.run_logger = run_logger
        self.max_text_length = max_text_length

    def process_document(
        self,
        content: str,
        document_type: DocumentType = DocumentType.TEXT,
        title: str | None = None,
    ) -> Document:
        """Parse and persist a document, reusing the cached parse for identical input.

        A cache hit returns the earlier document unchanged, including its title.
        """

        if len(content) > self.max_text_length:
            raise InputError(
                f"Document text is too long ({len(content)} characters; "
                f"maximum is {self.max_text_length})."
            )
        cache_key = make_cache_key("doc", document_type.value, content=content)
        cached = self.cache.get(cache_key)
        if isinstance(cached, Document):
            if not self.repository.exists(cached.id):
                self.repository.save(cached)
            self._log("INFO", "cache_hit", document=cached.id)
            return cached

        self._log("INFO", "start", type=document_type.value, chars=len(content))
        document = self.segmenter.segment(content, document_type=document_type, title=title)
        self.cache.set(cache_key, document)
        self.repository.save(document)
        self._log(
            "INFO",
            "complete",
            document=document.id,
            paragraphs=document.paragraph_count,
            words=document.word_count,
        )
        return document

    def process_document_with_audio(
        self,
        content: str,
        document_type: DocumentType = DocumentType.TEXT,
        title: str | None = None,
        *,
        generate_audio: bool = True,
        voice_id: str | None = None,
        output_format: OutputFormat | str | None = None,
    ) -> BatchOutcome:
        """Process a document and synthesize audio for each paragraph in order.

        A failing paragraph is recorded in the outcome list and does not stop
        the remaining paragraphs.
        """

        document = self.process_document(content, document_type, title)
        if not generate_audio:
            return BatchOutcome(document=document, outcomes=())
        if self.speech_service is None:
            raise InputError("Audio generation requires a configured speech service.")

        outcomes: list[ParagraphAudio | ParagraphFailure] = []
        for paragraph in document.paragraphs:
            try:
                speech = self.speech_service.generate_speech(
                    paragraph.content,
                    voice_id=voice_id,
                    output_format=output_format,
                    file_name=f"{document.id}_paragraph_{paragraph.order}",
                )
            except Exception as exc:
                self._log(
                    "ERROR",
                    "paragraph_failure",
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
                paragraph.audio = None
                continue
            reference = AudioReference(
                url=speech.audio_url,
                file_name=speech.file_name,
                duration_seconds=speech.duration_seconds,
            )
            paragraph.audio = reference
            outcomes.append(
                ParagraphAudio(
                    paragraph_id=paragraph.id,
                    paragraph_order=paragraph.order,
                    audio=reference,
                )
            )

        self.cache.set(make_cache_key("doc", document_type.value, content=content), document)
        self.repository.save(document)
        outcome = BatchOutcome(document=document, outcomes=tuple(outcomes))
        self._log(
            "INFO",
            "audio_complete",
            document=document.id,
            failed=len(outcome.failed),
            succeeded=len(outcome.succeeded),
        )
        return outcome

    def ingest_file(
        self,
        path: Path,
        title: str | None = None,
        mimetype: str | None = None,
    ) -> Document:
        """Extract text from a file and process it as a document."""

        document_type, content = self._read_file(path, mimetype)
        return self.process_document(content, document_type, title or path.stem)

    def ingest_file_with_audio(
        self,
        path: Path,
        title: str | None = None,
        mimetype: str | None = None,
        *,
        voice_id: str | None = None,
        output_format: OutputFormat | str | None = None,
    ) -> BatchOutcome:
        """Extract text from a file, process it, and synthesize paragraph audio."""

        document_type, content = self._read_file(path, mimetype)
        return self.process_document_with_audio(
            content,
            document_type,
            title or path.stem,
            voice_id=voice_id,
            output_format=output_format,
        )

    def _read_file(self, path: Path, mimetype: str | None) -> tuple[DocumentType, str]:
        document_type = resolve_document_type(path.name, mimetype)
        return document_type, self.extractor.extract_file(path, document_type)

    def get_document(self, document_id: str) -> Document:
        """Return one stored document or raise `NotFoundError`."""

        return self.repository.get(document_id)

    def list_documents(self, page: int = 1, limit: int = 10) -> tuple[list[Document], int]:
        """Return one 1-based page of documents, newest first, and the total count."""

        if page < 1:
            raise InputError("`page` must be at least 1.")
        if limit < 1:
            raise InputError("`limit` must be at least 1.")
        capped_limit = min(limit, MAX_PAGE_LIMIT)
        return self.repository.list(offset=(page - 1) * capped_limit, limit=capped_limit)

    def delete_document(self, document_id: str) -> None:
        """Delete one stored document or raise `NotFoundError`."""

        self.repository.delete(document_id)
        self._log("INFO", "deleted", document=document_id)

    def _log(self, level: str, event: str, **context: object) -> None:
        if self.run_logger is not None:
            self.run_logger.log_event(level, event, "document", **context)
