"""Lazy Whisper (faster-whisper) loader with an explicit mock mode."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Tuple

from src.memo_core.models import SpeakerInterval

from ..settings import ProxySettings

LOGGER = logging.getLogger("murmur.whisper")


class WhisperEngine:
    """Loads Whisper on first use. ``WHISPER_USE_MOCK=1`` skips the model entirely."""

    def __init__(self, settings: ProxySettings) -> None:
        self.settings = settings
        self._lock = threading.Lock()
        self._model = None
        self._mock = settings.whisper_mock_transcriber
        if self._mock:
            LOGGER.warning(
                "Whisper mock mode enabled (set WHISPER_USE_MOCK=0 and configure "
                "WHISPER_MODEL to enable real transcription)."
            )

    def _load_model(self):
        if self._model is None:
            with self._lock:
                if self._model is None:
                    from faster_whisper import WhisperModel

                    try:
                        self._model = WhisperModel(
                            self.settings.whisper_model,
                            device=self.settings.whisper_device,
                            compute_type=self.settings.whisper_compute_type,
                        )
                    except Exception as exc:  # pragma: no cover - hardware/env dep
                        LOGGER.error(
                            "Failed to load Whisper model '%s': %s",
                            self.settings.whisper_model,
                            exc,
                        )
                        raise
        return self._model

    def transcribe_path(self, path: Path) -> Tuple[str, List[SpeakerInterval]]:
        if self._mock:
            text = f"[mock transcript for {path.name}]"
            return text, []
        model = self._load_model()
        segments, _info = model.transcribe(
            str(path), language=self.settings.whisper_language, beam_size=5, vad_filter=True
        )
        return _collect_segments(segments)


def _collect_segments(segments: Iterable) -> Tuple[str, List[SpeakerInterval]]:
    pieces: List[str] = []
    intervals: List[SpeakerInterval] = []
    for segment in segments:
        text = (segment.text or "").strip()
        if not text:
            continue
        pieces.append(text)
        intervals.append(
            SpeakerInterval(
                text=text,
                start=float(getattr(segment, "start", 0.0) or 0.0),
                end=float(getattr(segment, "end", 0.0) or 0.0),
            )
        )
    return " ".join(pieces).strip(), intervals
