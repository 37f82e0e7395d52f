"""Voice and output-format identifiers for speech synthesis.

Responsibilities:
- Enumerate supported Polly voices and audio output formats.
- Map output formats to content types, file extensions, and provider tokens.
"""

from __future__ import annotations

from enum import Enum

from ..errors import InputError


class VoiceId(str, Enum):
    """Amazon Polly voices offered for English narration."""

    JOANNA = "Joanna"
    MATTHEW = "Matthew"
    IVY = "Ivy"
    JUSTIN = "Justin"
    KENDRA = "Kendra"
    KIMBERLY = "Kimberly"
    SALLI = "Salli"
    JOEY = "Joey"
    RUTH = "Ruth"
    STEPHEN = "Stephen"


OPENAI_VOICES = frozenset(
    {"alloy", "ash", "coral", "echo", "fable", "nova", "onyx", "sage", "shimmer"}
)


class OutputFormat(str, Enum):
    """Audio container formats accepted by the speech service."""

    MP3 = "mp3"
    OGG_VORBIS = "ogg_vorbis"
    PCM = "pcm"

    @property
    def content_type(self) -> str:
        """Return the MIME type used when storing audio in this format."""

        return _CONTENT_TYPES[self]

    @property
    def file_extension(self) -> str:
        """Return the file extension used for stored objects."""

        return _FILE_EXTENSIONS[self]

    @property
    def openai_response_format(self) -> str:
        """Return the closest OpenAI `/audio/speech` response format."""

        return _OPENAI_FORMATS[self]


_CONTENT_TYPES = {
    OutputFormat.MP3: "audio/mpeg",
    OutputFormat.OGG_VORBIS: "audio/ogg",
    OutputFormat.PCM: "audio/pcm",
}
_FILE_EXTENSIONS = {
    OutputFormat.MP3: "mp3",
    OutputFormat.OGG_VORBIS: "ogg",
    OutputFormat.PCM: "pcm",
}
_OPENAI_FORMATS = {
    OutputFormat.MP3: "mp3",
    OutputFormat.OGG_VORBIS: "opus",
    OutputFormat.PCM: "pcm",
}


def parse_output_format(value: str | OutputFormat) -> OutputFormat:
    """Parse an output format token, raising `InputError` for unknown values."""

    if isinstance(value, OutputFormat):
        return value
    token = value.strip().lower()
    try:
        return OutputFormat(token)
    except ValueError as exc:
        supported = ", ".join(item.value for item in OutputFormat)
        raise InputError(f"Unsupported output format `{value}`; supported: {supported}.") from exc
