"""Top-level package for Docvoice.

This package turns text, PDF, and Word documents into structured paragraphs,
synthesizes per-paragraph speech, and aligns recorded audio tracks with
document paragraphs. Services are wired from configuration by `build_services`.
"""

from .services import build_services

__all__ = ["build_services", "__version__"]

__version__ = "0.1.0"
