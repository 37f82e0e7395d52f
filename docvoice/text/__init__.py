"""Text normalization and segmentation components.

This package provides deterministic whitespace normalization and the
paragraph/sentence segmenter used to build `Document` records.
"""

from .normalizer import (
    CollapseBlankLines,
    CollapseInlineWhitespace,
    TextNormalizer,
    UnifyLineEndings,
    normalize_text,
)
from .segmenter import TextSegmenter, count_words, split_paragraphs, split_sentences
from .slug import slugify_file_stem

__all__ = [
    "TextNormalizer",
    "TextSegmenter",
    "UnifyLineEndings",
    "CollapseBlankLines",
    "CollapseInlineWhitespace",
    "normalize_text",
    "split_paragraphs",
    "split_sentences",
    "count_words",
    "slugify_file_stem",
]
