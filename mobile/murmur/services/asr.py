"""Remote transcription and the on-device Whisper fallback."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Iterable, List, Optional

from src.memo_core.models import SpeakerInterval

from ..store.settings_store import ClientSettings
from .network import ApiClient, TranscribeResult

LOGGER = logging.getLogger("murmur.asr")


class RemoteASRClient:
    """Asks the brain service to transcribe and diarize a recording."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    async def transcribe(self, identity: str, *, force: bool = False) -> TranscribeResult:
        return await self.api.transcribe(identity, force=force)


class LocalASRFallback:
    """faster-whisper on the local machine, used when the service is offline.

    Produces word-level timestamps without speaker labels.
    """

    def __init__(
        self,
        model_name: str = "small",
        *,
        language: Optional[str] = None,
        device: str = "cpu",
        compute_type: str = "int8",
    ) -> None:
        self.model_name = model_name
        self.language = language or None
        self.device = device
        self.compute_type = compute_type
        self._lock = threading.Lock()
        self._model = None

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "LocalASRFallback":
        return cls(settings.fallback_model, language=settings.fallback_language or None)

    def _load_model(self):
        if self._model is None:
            with self._lock:
                if self._model is None:
                    from faster_whisper import WhisperModel

                    LOGGER.info("Loading fallback Whisper model '%s'", self.model_name)
                    self._model = WhisperModel(
                        self.model_name, device=self.device, compute_type=self.compute_type
                    )
        return self._model

    async def transcribe(self, identity: str) -> TranscribeResult:
        return await asyncio.to_thread(self._transcribe_sync, identity)

    def _transcribe_sync(self, identity: str) -> TranscribeResult:
        model = self._load_model()
        segments, _info = model.transcribe(
            identity, language=self.language, beam_size=5, vad_filter=True, word_timestamps=True
        )
        return _collect_words(segments)


def _collect_words(segments: Iterable) -> TranscribeResult:
    pieces: List[str] = []
    intervals: List[SpeakerInterval] = []
    for segment in segments:
        text = (getattr(segment, "text", "") or "").strip()
        if text:
            pieces.append(text)
        words = getattr(segment, "words", None) or []
        if not words and text:
            intervals.append(
                SpeakerInterval(
                    text=text,
                    start=float(getattr(segment, "start", 0.0) or 0.0),
                    end=float(getattr(segment, "end", 0.0) or 0.0),
                )
            )
        for word in words:
            token = (word.word or "").strip()
            if not token:
                continue
            intervals.append(SpeakerInterval(text=token, start=float(word.start), end=float(word.end)))
    return TranscribeResult(text=" ".join(pieces).strip(), intervals=intervals)


__all__ = ["LocalASRFallback", "RemoteASRClient"]
