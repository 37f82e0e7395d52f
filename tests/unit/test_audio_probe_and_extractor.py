"""Unit tests for audio probing, duration heuristics, and segment extraction."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
import wave

import pytest

from docvoice.audio import AudioProbe, SegmentExtractor, estimate_speech_duration
from docvoice.errors import AudioExtractionError
from docvoice.models import AudioSegment


def test_probe_reads_exact_wav_duration(write_wav: Callable[..., Path]) -> None:
    """WAV headers should yield exact duration and stream details."""

    info = AudioProbe().probe(write_wav("track.wav", 3.0, framerate=8000))

    assert info.duration_seconds == pytest.approx(3.0)
    assert info.format == "wav"
    assert info.sample_rate == 8000
    assert info.channels == 1


def test_probe_estimates_compressed_duration_from_size(tmp_path: Path) -> None:
    """Non-WAV files should be estimated at 128 kbps."""

    track = tmp_path / "talk.mp3"
    track.write_bytes(b"\x00" * 320_000)

    info = AudioProbe().probe(track)

    assert info.duration_seconds == pytest.approx(20.0)
    assert info.format == "mp3"


def test_probe_size_estimate_has_minimum_duration() -> None:
    """Tiny files should be reported with the minimum duration."""

    assert AudioProbe().estimate_from_size(16_000).duration_seconds == 10.0


def test_probe_rejects_missing_and_corrupt_files(tmp_path: Path) -> None:
    """Missing files and unreadable WAV payloads should raise extraction errors."""

    corrupt = tmp_path / "broken.wav"
    corrupt.write_bytes(b"not a wav")

    with pytest.raises(AudioExtractionError, match="not found"):
        AudioProbe().probe(tmp_path / "missing.wav")
    with pytest.raises(AudioExtractionError, match="not a readable WAV"):
        AudioProbe().probe(corrupt)


@pytest.mark.parametrize(
    ("text", "expected"),
    [("", 0), ("one two three", 1), (" ".join(["word"] * 150), 60), (" ".join(["w"] * 5), 2)],
)
def test_estimate_speech_duration_rounds_to_whole_seconds(text: str, expected: int) -> None:
    """Word-count estimates should round at 150 words per minute."""

    assert estimate_speech_duration(text) == expected


def test_extractor_slices_wav_frames_for_segment(
    tmp_path: Path,
    write_wav: Callable[..., Path],
) -> None:
    """WAV extraction should keep only frames inside the time range."""

    source = write_wav("source.wav", 10.0, framerate=8000)
    extractor = SegmentExtractor(tmp_path / "segments")

    output = extractor.extract(source, AudioSegment(2.5, 5.0), "part.wav")

    assert output == tmp_path / "segments" / "part.wav"
    with wave.open(str(output), "rb") as wav_file:
        assert wav_file.getnframes() == 20_000
        assert wav_file.getframerate() == 8000


def test_extractor_copies_non_wav_sources_whole(tmp_path: Path) -> None:
    """Compressed sources should be copied without decoding."""

    source = tmp_path / "talk.mp3"
    source.write_bytes(b"ID3payload")

    output = SegmentExtractor(tmp_path / "segments").extract(
        source, AudioSegment(0.0, 1.0), "part.mp3"
    )

    assert output.read_bytes() == b"ID3payload"


def test_extractor_rejects_missing_source(tmp_path: Path) -> None:
    """A missing source file should raise an extraction error."""

    with pytest.raises(AudioExtractionError, match="Source audio not found"):
        SegmentExtractor(tmp_path).extract(tmp_path / "nope.wav", AudioSegment(0.0, 1.0), "x.wav")
