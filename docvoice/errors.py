"""Domain exceptions for document, synthesis, storage, and CLI diagnostics."""

from __future__ import annotations


class DocvoiceError(RuntimeError):
    """Base class for all Docvoice domain errors."""


class InputError(DocvoiceError, ValueError):
    """Raised when caller-supplied input is malformed or out of bounds."""


class UnsupportedDocumentTypeError(InputError):
    """Raised when a file type or MIME type cannot be mapped to a document type."""


class DocumentParseError(DocvoiceError):
    """Raised when text cannot be extracted from a PDF or Word payload."""


class SynthesisError(DocvoiceError):
    """Raised when a speech synthesis request fails or returns unusable audio."""

    def __init__(
        self,
        message: str,
        *,
        failure_kind: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        """Initialize synthesis failure metadata for retry and diagnostics."""

        super().__init__(message)
        self.failure_kind = failure_kind
        self.status_code = status_code

    @property
    def is_transient(self) -> bool:
        """Return whether the failure kind is worth retrying."""

        return self.failure_kind in {"timeout", "transport", "throttled", "server_error"}


class StorageError(DocvoiceError):
    """Raised when audio data cannot be persisted after bounded retries."""


class AudioExtractionError(DocvoiceError):
    """Raised when a time range cannot be extracted from a source audio file."""


class NotFoundError(DocvoiceError):
    """Raised when a document or record id does not exist."""

    def __init__(self, kind: str, record_id: str) -> None:
        """Initialize a not-found error for one record kind and id."""

        super().__init__(f"{kind} `{record_id}` was not found.")
        self.kind = kind
        self.record_id = record_id


class CommandStageError(RuntimeError):
    """Raised when a specific CLI command stage fails."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped command error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint
