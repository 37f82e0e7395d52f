"""I/O helpers for document extraction, audio storage, and persistence."""

from .document_extractor import DocumentExtractor, resolve_document_type
from .repository import JsonDocumentRepository, document_from_payload, document_to_payload
from .storage import AudioStorage, LocalAudioStorage, S3AudioStorage

__all__ = [
    "AudioStorage",
    "DocumentExtractor",
    "JsonDocumentRepository",
    "LocalAudioStorage",
    "S3AudioStorage",
    "document_from_payload",
    "document_to_payload",
    "resolve_document_type",
]
