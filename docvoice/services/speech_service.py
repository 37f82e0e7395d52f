"""Speech generation service.

Responsibilities:
- Validate text, voice, and output format before synthesis.
- Reuse cached speech results for identical voice/format/text requests.
- Store synthesized audio and estimate its spoken duration.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from uuid import uuid4

from ..audio.probe import estimate_speech_duration
from ..cache import Cache, make_cache_key
from ..errors import InputError
from ..io.storage import AudioStorage
from ..models import SpeechResult
from ..telemetry.logger import RunLogger
from ..text.slug import slugify_file_stem
from ..tts.synthesizer import SpeechSynthesizer
from ..tts.voices import OutputFormat, parse_output_format

MAX_SPEECH_TEXT_LENGTH = 3000


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SpeechService:
    """Turn text into stored audio through a synthesizer and storage backend."""

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        storage: AudioStorage,
        cache: Cache,
        *,
        run_logger: RunLogger | None = None,
        words_per_minute: float = 150.0,
        default_voice: str | None = None,
        default_format: OutputFormat | str = OutputFormat.MP3,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize collaborators and synthesis defaults."""

        self.synthesizer = synthesizer
        self.storage = storage
        self.cache = cache
        self.run_logger = run_logger
        self.words_per_minute = words_per_minute
        self.default_voice = default_voice or synthesizer.default_voice
        self.default_format = parse_output_format(default_format)
        self._clock = clock

    def generate_speech(
        self,
        text: str,
        voice_id: str | None = None,
        output_format: OutputFormat | str | None = None,
        file_name: str | None = None,
    ) -> SpeechResult:
        """Synthesize text, store the audio, and return its speech record.

        Args:
            text: Text to speak; must be non-empty and at most 3000 characters.
            voice_id: Provider voice, defaulting to the service default voice.
            output_format: Audio format, defaulting to the service default format.
            file_name: Optional stored file stem; a random stem is used otherwise.

        Raises:
            InputError: If text, voice, or format is invalid.
            SynthesisError: If the provider fails after retries.
            StorageError: If the audio cannot be stored.
        """

        if not text or not text.strip():
            raise InputError("Text is required for speech synthesis.")
        if len(text) > MAX_SPEECH_TEXT_LENGTH:
            raise InputError(
                f"Text is too long for speech synthesis ({len(text)} characters; "
                f"maximum is {MAX_SPEECH_TEXT_LENGTH})."
            )
        voice = voice_id or self.default_voice
        if not self.synthesizer.supports_voice(voice):
            raise InputError(
                f"Voice `{voice}` is not supported by provider `{self.synthesizer.provider_id}`."
            )
        audio_format = (
            self.default_format if output_format is None else parse_output_format(output_format)
        )

        cache_key = make_cache_key("speech", voice, audio_format.value, text=text)
        cached = self.cache.get(cache_key)
        if isinstance(cached, SpeechResult):
            self._log("INFO", "cache_hit", voice=voice, format=audio_format.value)
            return cached

        self._log("INFO", "start", voice=voice, format=audio_format.value, chars=len(text))
        audio_bytes = self.synthesizer.synthesize(text, voice, audio_format)

        stem = slugify_file_stem(file_name, fallback="speech") if file_name else f"speech_{uuid4().hex}"
        stored_name = f"{stem}.{audio_format.file_extension}"
        audio_url = self.storage.store(audio_bytes, stored_name, audio_format.content_type)

        result = SpeechResult(
            audio_url=audio_url,
            file_name=stored_name,
            duration_seconds=float(estimate_speech_duration(text, self.words_per_minute)),
            voice_id=voice,
            output_format=audio_format.value,
            original_text=text,
            created_at=self._clock(),
        )
        self.cache.set(cache_key, result)
        self._log("INFO", "complete", file=stored_name, bytes=len(audio_bytes))
        return result

    def _log(self, level: str, event: str, **context: object) -> None:
        if self.run_logger is not None:
            self.run_logger.log_event(level, event, "speech", **context)
