"""Audio segment extraction for matched time ranges.

Responsibilities:
- Write one output file per matched time range.
- Slice WAV sources by frame range; copy other formats whole.
"""

from __future__ import annotations

from pathlib import Path
import shutil
import wave

from ..errors import AudioExtractionError
from ..models.datatypes import AudioSegment


class SegmentExtractor:
    """Extract time ranges from a source audio file into an output directory."""

    def __init__(self, output_dir: Path) -> None:
        """Initialize the extractor with its output directory."""

        self.output_dir = output_dir

    def extract(self, source_path: Path, segment: AudioSegment, output_name: str) -> Path:
        """Extract one time range and return the written file path."""

        if not source_path.exists():
            raise AudioExtractionError(f"Source audio not found: {source_path}")
        output_path = self.output_dir / output_name
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            if source_path.suffix.lower() == ".wav":
                self._slice_wav(source_path, segment, output_path)
            else:
                # Compressed formats are not decoded; the whole file is kept.
                shutil.copyfile(source_path, output_path)
        except (OSError, wave.Error, EOFError) as exc:
            raise AudioExtractionError(
                f"Failed to extract {segment.start_time:.3f}s-{segment.end_time:.3f}s "
                f"from {source_path.name}: {exc}"
            ) from exc
        return output_path

    @staticmethod
    def _slice_wav(source_path: Path, segment: AudioSegment, output_path: Path) -> None:
        """Copy the frames covering `segment` into a new WAV file."""

        with wave.open(str(source_path), "rb") as source:
            framerate = source.getframerate()
            total_frames = source.getnframes()
            start_frame = min(total_frames, max(0, int(round(segment.start_time * framerate))))
            end_frame = min(total_frames, max(start_frame, int(round(segment.end_time * framerate))))
            source.setpos(start_frame)
            frames = source.readframes(end_frame - start_frame)

            with wave.open(str(output_path), "wb") as target:
                target.setnchannels(source.getnchannels())
                target.setsampwidth(source.getsampwidth())
                target.setframerate(framerate)
                target.writeframes(frames)
