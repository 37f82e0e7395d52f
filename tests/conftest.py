"""Shared pytest fixtures for the full Docvoice test suite."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
import io
from pathlib import Path
import wave

import pytest

from docvoice.errors import SynthesisError
from docvoice.tts.voices import OutputFormat


class FakeSynthesizer:
    """Deterministic synthesizer double that can fail for selected texts."""

    provider_id = "fake"
    default_voice = "Joanna"

    def __init__(self, fail_when: Callable[[str], bool] | None = None) -> None:
        """Initialize call recording and an optional failure predicate."""

        self.calls: list[tuple[str, str, OutputFormat]] = []
        self._fail_when = fail_when or (lambda _text: False)

    def supports_voice(self, voice_id: str) -> bool:
        """Accept the Polly-style voices used in tests."""

        return voice_id in {"Joanna", "Matthew"}

    def synthesize(self, text: str, voice_id: str, output_format: OutputFormat) -> bytes:
        """Return fake audio bytes or raise a synthesis failure."""

        self.calls.append((text, voice_id, output_format))
        if self._fail_when(text):
            raise SynthesisError("simulated provider outage", failure_kind="server_error")
        return f"audio:{voice_id}:{text}".encode("utf-8")


class MemoryStorage:
    """In-memory audio storage double returning `memory://` URLs."""

    def __init__(self) -> None:
        """Initialize the object map."""

        self.objects: dict[str, tuple[bytes, str]] = {}

    def store(self, data: bytes, key: str, content_type: str) -> str:
        """Record the object and return its URL."""

        self.objects[key] = (data, content_type)
        return f"memory://{key}"


def build_wav_bytes(seconds: float, framerate: int = 8000, channels: int = 1) -> bytes:
    """Return a silent 16-bit PCM WAV payload of the requested length."""

    frame_count = int(round(seconds * framerate))
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav_file:
        wav_file.setnchannels(channels)
        wav_file.setsampwidth(2)
        wav_file.setframerate(framerate)
        wav_file.writeframes(b"\x00\x00" * channels * frame_count)
    return buffer.getvalue()


@pytest.fixture
def fake_synthesizer_factory() -> Callable[..., FakeSynthesizer]:
    """Provide a factory for synthesizer doubles with optional failure predicates."""

    return FakeSynthesizer


@pytest.fixture
def fake_synthesizer() -> FakeSynthesizer:
    """Provide a synthesizer double that always succeeds."""

    return FakeSynthesizer()


@pytest.fixture
def memory_storage() -> MemoryStorage:
    """Provide an empty in-memory audio store."""

    return MemoryStorage()


@pytest.fixture
def wav_bytes() -> Callable[..., bytes]:
    """Provide the silent WAV payload builder."""

    return build_wav_bytes


@pytest.fixture
def write_wav(tmp_path: Path) -> Callable[..., Path]:
    """Provide a helper writing a silent WAV file under `tmp_path`."""

    def _write(name: str, seconds: float, framerate: int = 8000) -> Path:
        path = tmp_path / name
        path.write_bytes(build_wav_bytes(seconds, framerate))
        return path

    return _write


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Provide a clock pinned to 2024-01-01T00:00:00Z."""

    return lambda: datetime(2024, 1, 1, tzinfo=timezone.utc)
