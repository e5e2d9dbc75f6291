"""Per-recording transcription state machine.

Cache first, then the brain service, then on-device Whisper when the service
cannot be reached. Every transition is published to subscribers from the
event loop thread, so observers see one ordered stream per recording.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Set

from src.memo_core.cache_store import CacheStore
from src.memo_core.models import SavedTranscript, TranscriptSegment, TranscriptionState
from src.memo_core.segments import merge_segments

from ..store.recordings import audio_duration
from .asr import LocalASRFallback, RemoteASRClient
from .chat import ChatSessionManager
from .network import ApiError, ConnectivityError, TranscribeResult
from .summarizer import SummarizationClient

LOGGER = logging.getLogger("murmur.orchestrator")

NO_SPEECH_MESSAGE = "No speech detected."


@dataclass(slots=True)
class TranscriptionSnapshot:
    identity: str
    state: TranscriptionState
    status: str
    full_text: str = ""
    segments: List[TranscriptSegment] = field(default_factory=list)
    incomplete: bool = False
    error: Optional[str] = None
    summary: Optional[str] = None
    summary_error: Optional[str] = None
    is_summarizing: bool = False
    elapsed_seconds: float = 0.0


StateListener = Callable[[TranscriptionSnapshot], None]
DurationProbe = Callable[[str], Optional[float]]


def is_incomplete(text: str, duration: Optional[float], threshold: float = 1.0) -> bool:
    """Fewer than ``threshold`` characters per second of audio looks truncated."""

    if not duration or duration <= 0:
        return False
    return len(text) / duration < threshold


class TranscriptionOrchestrator:
    def __init__(
        self,
        identity: str,
        *,
        cache: CacheStore,
        remote: RemoteASRClient,
        fallback: LocalASRFallback,
        summarizer: SummarizationClient,
        chat: Optional[ChatSessionManager] = None,
        duration_probe: DurationProbe = audio_duration,
        completeness_threshold: float = 1.0,
        progress_interval: float = 1.0,
    ) -> None:
        self.identity = identity
        self.cache = cache
        self.remote = remote
        self.fallback = fallback
        self.summarizer = summarizer
        self.chat = chat
        self.duration_probe = duration_probe
        self.completeness_threshold = completeness_threshold
        self.progress_interval = progress_interval

        self._state = TranscriptionState.IDLE
        self._status = "Idle"
        self._full_text = ""
        self._segments: List[TranscriptSegment] = []
        self._incomplete = False
        self._error: Optional[str] = None
        self._summary: Optional[str] = None
        self._summary_error: Optional[str] = None
        self._summary_generation: Optional[int] = None
        self._busy = False
        self._generation = 0
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None

        self._listeners: List[StateListener] = []
        self._ticker: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    # observation

    @property
    def state(self) -> TranscriptionState:
        return self._state

    def snapshot(self) -> TranscriptionSnapshot:
        elapsed = 0.0
        if self._started_at is not None:
            end = time.monotonic() if self._state.in_flight else (self._finished_at or time.monotonic())
            elapsed = end - self._started_at
        return TranscriptionSnapshot(
            identity=self.identity,
            state=self._state,
            status=self._status,
            full_text=self._full_text,
            segments=list(self._segments),
            incomplete=self._incomplete,
            error=self._error,
            summary=self._summary,
            summary_error=self._summary_error,
            is_summarizing=self._summary_generation == self._generation,
            elapsed_seconds=elapsed,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def stop_observing(self) -> None:
        """Detach observers and stop the progress ticker.

        In-flight transcription and summary requests keep running and still
        persist their results.
        """

        self._listeners.clear()
        self._stop_ticker()

    async def drain(self) -> None:
        """Wait for background work (summaries) started by this orchestrator."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _set(self, state: TranscriptionState, status: str) -> None:
        LOGGER.debug("%s: %s -> %s (%s)", self.identity, self._state.value, state.value, status)
        self._state = state
        self._status = status
        self._publish()

    # operations

    async def start(self, force: bool = False) -> TranscriptionSnapshot:
        if self._busy:
            LOGGER.debug("Transcription already running for %s", self.identity)
            return self.snapshot()
        self._busy = True
        try:
            self._error = None
            if self.chat is not None:
                await self.chat.aload()
            if not force:
                self._set(TranscriptionState.CACHE_CHECK, "Checking cache…")
                saved = await asyncio.to_thread(self.cache.load_transcript, self.identity)
                if saved is not None:
                    await self._load_cached(saved)
                    return self.snapshot()
            return await self._transcribe(force, "Connecting to transcription service…")
        finally:
            self._busy = False

    async def retranscribe(self) -> TranscriptionSnapshot:
        """Drop the cached transcript and chat, then transcribe from scratch."""

        if self._busy:
            return self.snapshot()
        self._busy = True
        try:
            self._generation += 1
            await asyncio.to_thread(self.cache.delete, self.cache.transcript_key(self.identity))
            await asyncio.to_thread(self.cache.delete, self.cache.summary_key(self.identity))
            if self.chat is not None:
                self.chat.reset()
            else:
                await asyncio.to_thread(self.cache.delete, self.cache.chat_key(self.identity))
            self._summary = None
            self._summary_error = None
            self._segments = []
            self._full_text = ""
            self._error = None
            return await self._transcribe(True, "Re-transcribing via service…")
        finally:
            self._busy = False

    async def continue_transcription(self) -> TranscriptionSnapshot:
        """Ask the service again for a flagged-incomplete transcript.

        The service has no resume token, so this forces a full transcription on
        the service side. The local cache is kept until a new result replaces it.
        """

        if self._busy:
            return self.snapshot()
        self._busy = True
        try:
            self._incomplete = False
            self._error = None
            return await self._transcribe(True, "Continuing transcription…")
        finally:
            self._busy = False

    async def retry_summary(self) -> None:
        if self._full_text.strip():
            self._spawn(self._summarize(self._full_text, self._generation))

    # internals

    async def _load_cached(self, saved: SavedTranscript) -> None:
        self._apply_transcript(saved)
        duration = await asyncio.to_thread(self.duration_probe, self.identity)
        self._incomplete = is_incomplete(saved.full_text, duration, self.completeness_threshold)
        if self._incomplete:
            LOGGER.info("Cached transcript for %s looks incomplete", self.identity)
        self._set(TranscriptionState.LOADED, "Loaded from cache")
        if self._summary is None:
            cached = await asyncio.to_thread(self.cache.load_summary, self.identity)
            if cached:
                self._summary = cached
                self._publish()
            else:
                self._trigger_summary(saved.full_text)

    async def _transcribe(self, force: bool, status: str) -> TranscriptionSnapshot:
        self._incomplete = False
        self._set(TranscriptionState.CONNECTING, status)
        self._start_ticker()
        try:
            result = await self._acquire(force)
        finally:
            self._finished_at = time.monotonic()
            self._stop_ticker()
        if result is None:
            return self.snapshot()

        text = result.text.strip()
        if not text:
            return self._fail(NO_SPEECH_MESSAGE)

        saved = SavedTranscript(
            full_text=text,
            segments=merge_segments(text, result.intervals) if result.intervals else None,
        )
        # a summary of the previous text no longer applies
        self._generation += 1
        await asyncio.to_thread(self.cache.save_transcript, self.identity, saved)
        await asyncio.to_thread(self.cache.delete, self.cache.summary_key(self.identity))
        self._apply_transcript(saved)
        self._set(TranscriptionState.COMPLETE, "Transcription complete")
        self._trigger_summary(text, fresh=True)
        return self.snapshot()

    async def _acquire(self, force: bool) -> Optional[TranscribeResult]:
        try:
            self._set(TranscriptionState.TRANSCRIBING, "Transcribing via Whisper…")
            return await self.remote.transcribe(self.identity, force=force)
        except ConnectivityError as exc:
            LOGGER.warning("Service unreachable for %s (%s); using on-device ASR", self.identity, exc)
        except ApiError as exc:
            self._fail(str(exc))
            return None

        self._set(TranscriptionState.FALLBACK_ACTIVE, "Service offline, using on-device ASR…")
        try:
            return await self.fallback.transcribe(self.identity)
        except Exception as exc:
            LOGGER.exception("On-device ASR failed for %s", self.identity)
            self._fail(f"On-device ASR failed: {exc}")
            return None

    def _apply_transcript(self, saved: SavedTranscript) -> None:
        self._full_text = saved.full_text
        self._segments = list(saved.segments) if saved.segments else merge_segments(saved.full_text)
        if self.chat is not None:
            self.chat.set_transcript_context(saved.full_text)

    def _fail(self, message: str) -> TranscriptionSnapshot:
        self._error = message
        self._set(TranscriptionState.FAILED, message)
        return self.snapshot()

    def _trigger_summary(self, text: str, *, fresh: bool = False) -> None:
        if not text.strip() or self._summary_generation == self._generation:
            return
        if fresh:
            self._summary = None
        self._spawn(self._summarize(text, self._generation))

    async def _summarize(self, text: str, generation: int) -> None:
        # one request per transcript generation; older ones finish but are discarded
        if self._summary_generation == generation:
            return
        self._summary_generation = generation
        self._summary_error = None
        self._publish()
        try:
            summary = await self.summarizer.summarize(text, self.identity)
        except ApiError as exc:
            if generation == self._generation:
                self._summary_error = str(exc)
            LOGGER.warning("Summary failed for %s: %s", self.identity, exc)
        else:
            if generation == self._generation:
                await asyncio.to_thread(self.cache.save_summary, self.identity, summary)
                self._summary = summary
            else:
                LOGGER.info("Discarding summary of a replaced transcript for %s", self.identity)
        finally:
            if self._summary_generation == generation:
                self._summary_generation = None
            self._publish()

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _start_ticker(self) -> None:
        self._stop_ticker()
        self._started_at = time.monotonic()
        self._finished_at = None
        if self._listeners and self.progress_interval > 0:
            self._ticker = asyncio.ensure_future(self._tick())

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    async def _tick(self) -> None:
        while self._state.in_flight:
            await asyncio.sleep(self.progress_interval)
            self._publish()


__all__ = [
    "NO_SPEECH_MESSAGE",
    "TranscriptionOrchestrator",
    "TranscriptionSnapshot",
    "is_incomplete",
]
