"""Application services for documents, speech, and alignment.

This package coordinates segmentation, synthesis, storage, and matching
components behind the operations exposed by the CLI.
"""

from .alignment_service import AlignmentService, ExtractingMaterializer
from .document_service import DocumentService
from .runtime import ServiceBundle, build_services, resolve_runtime_config, validate_config
from .speech_service import SpeechService

__all__ = [
    "AlignmentService",
    "DocumentService",
    "ExtractingMaterializer",
    "ServiceBundle",
    "SpeechService",
    "build_services",
    "resolve_runtime_config",
    "validate_config",
]
