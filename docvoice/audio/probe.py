"""Audio duration probing and estimation heuristics.

Responsibilities:
- Read exact duration and format details from WAV headers.
- Estimate duration for other formats from file size at an assumed bitrate.
- Estimate spoken duration of text from word count.

Notes:
- Size-based and word-based estimates are unvalidated heuristics. They drift
  for variable-bitrate files and for non-English speech.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from pathlib import Path
import wave

from ..errors import AudioExtractionError
from ..models.datatypes import AudioInfo


def estimate_speech_duration(text: str, words_per_minute: float = 150.0) -> int:
    """Estimate spoken duration in whole seconds from whitespace token count."""

    if words_per_minute <= 0:
        raise ValueError("words_per_minute must be positive.")
    word_count = len(text.split())
    return int(math.floor(word_count / words_per_minute * 60.0 + 0.5))


@dataclass(frozen=True, slots=True)
class AudioProbe:
    """Inspect stored audio files without decoding compressed payloads."""

    assumed_bitrate_kbps: int = 128
    minimum_duration_seconds: float = 10.0
    default_sample_rate: int = 44100
    default_channels: int = 2

    def probe(self, path: Path) -> AudioInfo:
        """Return duration and format details for an audio file."""

        if not path.exists():
            raise AudioExtractionError(f"Audio file not found: {path}")
        if path.suffix.lower() == ".wav":
            return self._probe_wav(path)
        return self.estimate_from_size(path.stat().st_size, path.suffix.lstrip(".").lower() or "mp3")

    def estimate_from_size(self, size_bytes: int, audio_format: str = "mp3") -> AudioInfo:
        """Estimate duration from byte size at the assumed constant bitrate."""

        estimated = (size_bytes * 8) / (self.assumed_bitrate_kbps * 1000)
        return AudioInfo(
            duration_seconds=max(estimated, self.minimum_duration_seconds),
            format=audio_format,
            sample_rate=self.default_sample_rate,
            channels=self.default_channels,
        )

    def _probe_wav(self, path: Path) -> AudioInfo:
        """Read exact WAV duration from frame count and sample rate."""

        try:
            with wave.open(str(path), "rb") as wav_file:
                frame_count = wav_file.getnframes()
                sample_rate = wav_file.getframerate()
                channels = wav_file.getnchannels()
        except (wave.Error, EOFError) as exc:
            raise AudioExtractionError(f"Audio file is not a readable WAV payload: {path}") from exc
        if sample_rate <= 0:
            raise AudioExtractionError(f"Audio file has invalid WAV sample rate: {path}")
        return AudioInfo(
            duration_seconds=frame_count / float(sample_rate),
            format="wav",
            sample_rate=sample_rate,
            channels=channels,
        )
