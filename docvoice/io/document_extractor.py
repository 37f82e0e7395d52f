"""Document text extraction for plain text, PDF, and Word inputs.

Responsibilities:
- Resolve document types from file names and MIME types.
- Extract plain text from raw document bytes per document type.
"""

from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import assert_never
from zipfile import BadZipFile

import docx2txt
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from ..errors import DocumentParseError, UnsupportedDocumentTypeError
from ..models import DocumentType

_MIME_TYPES: dict[str, DocumentType] = {
    "text/plain": DocumentType.TEXT,
    "application/pdf": DocumentType.PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": (
        DocumentType.WORD
    ),
}

_EXTENSIONS: dict[str, DocumentType] = {
    ".txt": DocumentType.TEXT,
    ".text": DocumentType.TEXT,
    ".md": DocumentType.TEXT,
    ".pdf": DocumentType.PDF,
    ".docx": DocumentType.WORD,
}

_LEGACY_WORD_HINTS = frozenset({"application/msword", ".doc"})


def resolve_document_type(filename: str | Path | None, mimetype: str | None = None) -> DocumentType:
    """Resolve a document type from an explicit MIME type or the file extension.

    Raises:
        UnsupportedDocumentTypeError: When neither hint maps to a supported type.
    """

    if mimetype:
        normalized = mimetype.split(";", 1)[0].strip().lower()
        if normalized in _MIME_TYPES:
            return _MIME_TYPES[normalized]
    if filename:
        suffix = Path(filename).suffix.lower()
        if suffix in _EXTENSIONS:
            return _EXTENSIONS[suffix]
    hint = mimetype or (Path(filename).suffix if filename else "") or "unknown"
    legacy_hints = {
        (mimetype or "").split(";", 1)[0].strip().lower(),
        Path(filename).suffix.lower() if filename else "",
    }
    if legacy_hints & _LEGACY_WORD_HINTS:
        raise UnsupportedDocumentTypeError(
            f"Legacy Word documents (`{hint}`) are not supported. Save the file as `.docx`."
        )
    raise UnsupportedDocumentTypeError(
        f"Unsupported document type `{hint}`. Use a text, PDF, or Word document."
    )


class DocumentExtractor:
    """Extract plain text from in-memory document payloads."""

    def extract(self, data: bytes, document_type: DocumentType) -> str:
        """Return extracted text for the given document type."""

        match document_type:
            case DocumentType.TEXT:
                return self._extract_text(data)
            case DocumentType.PDF:
                return self._extract_pdf(data)
            case DocumentType.WORD:
                return self._extract_word(data)
            case _:
                assert_never(document_type)

    def extract_file(self, path: Path, document_type: DocumentType | None = None) -> str:
        """Read a document file from disk and extract its text."""

        if not path.exists():
            raise DocumentParseError(f"Input document not found: {path}")
        resolved_type = document_type or resolve_document_type(path.name)
        return self.extract(path.read_bytes(), resolved_type)

    def _extract_text(self, data: bytes) -> str:
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise DocumentParseError("Text document is not valid UTF-8.") from exc

    def _extract_pdf(self, data: bytes) -> str:
        try:
            reader = PdfReader(BytesIO(data))
            pages = [(page.extract_text() or "").replace("\f", "\n").strip() for page in reader.pages]
        except (PdfReadError, ValueError, OSError) as exc:
            raise DocumentParseError(f"Failed to extract text from PDF: {exc}") from exc
        text = "\n\n".join(page for page in pages if page)
        if not text.strip():
            raise DocumentParseError(
                "No extractable text found in PDF. Only text-based PDFs are supported."
            )
        return text

    def _extract_word(self, data: bytes) -> str:
        try:
            text = docx2txt.process(BytesIO(data))
        except (BadZipFile, KeyError, ValueError, OSError) as exc:
            raise DocumentParseError(f"Failed to extract text from Word document: {exc}") from exc
        if not text or not text.strip():
            raise DocumentParseError("No extractable text found in Word document.")
        return text
