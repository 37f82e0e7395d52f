"""JSON-file document repository.

Responsibilities:
- Persist processed documents as one JSON file per document id.
- Convert between `Document` objects and JSON-serializable payloads.
- Provide paged listing ordered by creation time, newest first.
"""

from __future__ import annotations

from datetime import datetime
import json
from pathlib import Path
from typing import Any

from ..errors import NotFoundError
from ..models import AudioReference, Document, DocumentType, Paragraph


def document_to_payload(document: Document) -> dict[str, Any]:
    """Serialize a document and its paragraphs to a JSON-friendly mapping."""

    return {
        "id": document.id,
        "title": document.title,
        "content": document.content,
        "type": document.type.value,
        "word_count": document.word_count,
        "sentence_count": document.sentence_count,
        "paragraph_count": document.paragraph_count,
        "created_at": document.created_at.isoformat(),
        "paragraphs": [
            {
                "id": paragraph.id,
                "order": paragraph.order,
                "content": paragraph.content,
                "word_count": paragraph.word_count,
                "sentences": list(paragraph.sentences),
                "audio": (
                    None
                    if paragraph.audio is None
                    else {
                        "url": paragraph.audio.url,
                        "file_name": paragraph.audio.file_name,
                        "duration_seconds": paragraph.audio.duration_seconds,
                    }
                ),
            }
            for paragraph in document.paragraphs
        ],
    }


def document_from_payload(payload: dict[str, Any]) -> Document:
    """Rebuild a document from a mapping produced by `document_to_payload`."""

    paragraphs: list[Paragraph] = []
    for item in payload.get("paragraphs", []):
        audio_payload = item.get("audio")
        audio = (
            None
            if not isinstance(audio_payload, dict)
            else AudioReference(
                url=str(audio_payload["url"]),
                file_name=str(audio_payload["file_name"]),
                duration_seconds=float(audio_payload["duration_seconds"]),
            )
        )
        paragraphs.append(
            Paragraph(
                id=str(item["id"]),
                order=int(item["order"]),
                content=str(item["content"]),
                word_count=int(item["word_count"]),
                sentences=tuple(str(sentence) for sentence in item.get("sentences", [])),
                audio=audio,
            )
        )
    return Document(
        id=str(payload["id"]),
        title=str(payload["title"]),
        content=str(payload["content"]),
        type=DocumentType(payload["type"]),
        word_count=int(payload["word_count"]),
        sentence_count=int(payload["sentence_count"]),
        paragraph_count=int(payload["paragraph_count"]),
        paragraphs=paragraphs,
        created_at=datetime.fromisoformat(str(payload["created_at"])),
    )


class JsonDocumentRepository:
    """Filesystem repository storing documents as `<root>/<id>.json`."""

    def __init__(self, root: Path) -> None:
        """Initialize the repository with a root directory."""

        self.root = root

    def _path(self, document_id: str) -> Path:
        return self.root / f"{document_id}.json"

    def save(self, document: Document) -> Path:
        """Write the document payload and return its path."""

        path = self._path(document.id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(document_to_payload(document), ensure_ascii=False, indent=2, sort_keys=True),
            encoding="utf-8",
        )
        return path

    def get(self, document_id: str) -> Document:
        """Load one document by id."""

        path = self._path(document_id)
        if not path.exists():
            raise NotFoundError("Document", document_id)
        return document_from_payload(json.loads(path.read_text(encoding="utf-8")))

    def list(self, offset: int = 0, limit: int = 10) -> tuple[list[Document], int]:
        """Return one page of documents, newest first, plus the total count."""

        if not self.root.exists():
            return [], 0
        documents = [
            document_from_payload(json.loads(path.read_text(encoding="utf-8")))
            for path in sorted(self.root.glob("*.json"))
        ]
        documents.sort(key=lambda document: document.created_at, reverse=True)
        start = max(0, offset)
        return documents[start : start + max(0, limit)], len(documents)

    def delete(self, document_id: str) -> None:
        """Remove one document by id."""

        path = self._path(document_id)
        if not path.exists():
            raise NotFoundError("Document", document_id)
        path.unlink()

    def exists(self, document_id: str) -> bool:
        """Return whether a document with the id is stored."""

        return self._path(document_id).exists()
