"""Transcribe recordings on request, caching results as sidecar files."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import List, Optional

from src.memo_core.cache_store import TRANSCRIPT_SUFFIX, CacheStore
from src.memo_core.codec import decode_transcript
from src.memo_core.models import SavedTranscript, SpeakerInterval
from src.memo_core.segments import merge_segments, segments_to_intervals

from ..metrics import TRANSCRIBE_COUNTER, TRANSCRIBE_DURATION
from ..settings import ProxySettings
from .whisper_engine import WhisperEngine

LOGGER = logging.getLogger("murmur.transcripts")


class RecordingNotFound(FileNotFoundError):
    pass


def build_cache(settings: ProxySettings) -> CacheStore:
    return CacheStore(
        settings.data_dir,
        shared_roots=settings.shared_roots,
        shared_summary_dir=settings.shared_recordings_dir or None,
    )


class TranscriptService:
    """Whisper transcription with a ``.transcript`` sidecar next to each recording."""

    def __init__(self, settings: ProxySettings, engine: Optional[WhisperEngine] = None) -> None:
        self.settings = settings
        self.cache = build_cache(settings)
        self.whisper = engine or WhisperEngine(settings)
        self.knowledge_dir = Path(settings.knowledge_dir)
        self.knowledge_dir.mkdir(parents=True, exist_ok=True)

    async def transcribe(
        self, identity: str, force: bool = False
    ) -> tuple[str, Optional[List[SpeakerInterval]], bool]:
        """Return ``(text, intervals, cached)`` for the recording at ``identity``."""

        path = Path(identity)
        if not path.is_file():
            raise RecordingNotFound(f"File not found: {identity}")

        if not force:
            saved = self.cache.load_transcript(identity)
            if saved is not None and saved.full_text.strip():
                LOGGER.info("Loaded cached transcript (%d chars)", len(saved.full_text))
                intervals = segments_to_intervals(saved.segments) if saved.segments else None
                return saved.full_text, intervals, True

        LOGGER.info(
            "Transcribing %s (%.1f MB)", path.name, path.stat().st_size / 1e6
        )
        start_time = time.perf_counter()
        try:
            text, intervals = await asyncio.to_thread(self.whisper.transcribe_path, path)
        except Exception:
            TRANSCRIBE_COUNTER.labels(status="error").inc()
            TRANSCRIBE_DURATION.observe(time.perf_counter() - start_time)
            raise
        TRANSCRIBE_COUNTER.labels(status="success").inc()
        TRANSCRIBE_DURATION.observe(time.perf_counter() - start_time)

        saved = SavedTranscript(
            full_text=text,
            segments=merge_segments(text, intervals) if intervals else None,
        )
        self.cache.save_transcript(identity, saved)
        if text:
            self._write_knowledge(path.stem, text)
        LOGGER.info("Transcript ready (%d chars)", len(text))
        return text, intervals or None, False

    def sync_knowledge(self) -> int:
        """Copy transcripts from the shared recordings dir into the knowledge dir."""

        source = Path(self.settings.shared_recordings_dir)
        if not source.is_dir():
            return 0
        count = 0
        for sidecar in source.glob(f"*{TRANSCRIPT_SUFFIX}"):
            dest = self.knowledge_dir / f"{sidecar.stem}.txt"
            if dest.exists():
                continue
            try:
                saved = decode_transcript(sidecar.read_bytes())
            except OSError as exc:
                LOGGER.warning("Could not read %s: %s", sidecar, exc)
                continue
            if saved is None or not saved.full_text.strip():
                continue
            dest.write_text(saved.full_text, encoding="utf-8")
            count += 1
        if count:
            LOGGER.info("Synced %d transcript(s) to the knowledge dir", count)
        return count

    def _write_knowledge(self, stem: str, text: str) -> None:
        (self.knowledge_dir / f"{stem}.txt").write_text(text, encoding="utf-8")
