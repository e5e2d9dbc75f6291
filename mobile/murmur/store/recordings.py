"""Listing of captured recordings under the configured recordings root."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

import soundfile as sf

LOGGER = logging.getLogger("murmur.recordings")

AUDIO_SUFFIXES = {".m4a", ".wav", ".flac", ".mp3", ".ogg"}
DECODE_SAMPLE_RATE = 16000


@dataclass(slots=True)
class LocalRecording:
    path: Path
    created_at: datetime
    size_bytes: int

    @property
    def identity(self) -> str:
        return str(self.path)

    @property
    def name(self) -> str:
        return self.path.name


class RecordingLibrary:
    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def list(self) -> List[LocalRecording]:
        """Recordings sorted newest first."""

        if not self.root.is_dir():
            return []
        found: List[LocalRecording] = []
        for path in self.root.iterdir():
            if path.name.startswith(".") or path.suffix.lower() not in AUDIO_SUFFIXES:
                continue
            try:
                stat = path.stat()
            except OSError as exc:
                LOGGER.warning("Skipping %s: %s", path, exc)
                continue
            found.append(
                LocalRecording(
                    path=path,
                    created_at=datetime.fromtimestamp(_creation_time(stat)),
                    size_bytes=stat.st_size,
                )
            )
        found.sort(key=lambda item: item.created_at, reverse=True)
        return found

    def created_on(self, day: date) -> List[LocalRecording]:
        return [item for item in self.list() if item.created_at.date() == day]

    def delete(self, recording: LocalRecording) -> None:
        recording.path.unlink(missing_ok=True)


def audio_duration(path: Path | str) -> Optional[float]:
    """Duration in seconds, or None when the audio cannot be read.

    libsndfile has no AAC support, so ``.m4a`` and friends are decoded with
    faster-whisper's bundled decoder instead.
    """

    try:
        info = sf.info(str(path))
    except (RuntimeError, OSError) as exc:
        LOGGER.debug("soundfile cannot read %s (%s); decoding instead", path, exc)
    else:
        return float(info.duration)

    from faster_whisper import decode_audio

    try:
        samples = decode_audio(str(path), sampling_rate=DECODE_SAMPLE_RATE)
    except Exception as exc:
        LOGGER.debug("Could not probe duration of %s: %s", path, exc)
        return None
    return len(samples) / DECODE_SAMPLE_RATE


def _creation_time(stat: os.stat_result) -> float:
    return getattr(stat, "st_birthtime", None) or stat.st_mtime


__all__ = ["AUDIO_SUFFIXES", "DECODE_SAMPLE_RATE", "LocalRecording", "RecordingLibrary", "audio_duration"]
