"""Composition root for the Murmur client."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import httpx

from src.memo_core.cache_store import CacheStore

from .services.asr import LocalASRFallback, RemoteASRClient
from .services.chat import ChatSessionManager
from .services.daily import DailyAggregator
from .services.network import ApiClient
from .services.orchestrator import TranscriptionOrchestrator
from .services.summarizer import SummarizationClient
from .store.recordings import RecordingLibrary
from .store.report_store import ReportStore
from .store.settings_store import ClientSettings

LOGGER = logging.getLogger("murmur.app")


class MurmurApp:
    """Builds the services once and hands out one orchestrator per recording."""

    def __init__(
        self,
        settings: ClientSettings,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        fallback: Optional[LocalASRFallback] = None,
    ) -> None:
        self.settings = settings
        self.cache: CacheStore = settings.cache_store()
        self.api = ApiClient(settings, client=http_client)
        self.remote = RemoteASRClient(self.api)
        self.fallback = fallback or LocalASRFallback.from_settings(settings)
        self.summarizer = SummarizationClient(self.api)
        self.library = RecordingLibrary(settings.recordings_root)
        self.reports = ReportStore(settings.reports_dir)
        self.daily = DailyAggregator(
            library=self.library, cache=self.cache, reports=self.reports, summarizer=self.summarizer
        )
        self._orchestrators: Dict[str, TranscriptionOrchestrator] = {}
        self._global_chat: Optional[ChatSessionManager] = None

    def resolve(self, recording: str) -> str:
        """Recording identity for a path, or a bare name under the recordings root."""

        path = Path(recording).expanduser()
        if not path.is_absolute() and not path.exists():
            path = Path(self.settings.recordings_root) / path
        return str(path.resolve())

    def orchestrator(self, identity: str) -> TranscriptionOrchestrator:
        if identity not in self._orchestrators:
            chat = ChatSessionManager.for_recording(self.api, self.cache, identity)
            self._orchestrators[identity] = TranscriptionOrchestrator(
                identity,
                cache=self.cache,
                remote=self.remote,
                fallback=self.fallback,
                summarizer=self.summarizer,
                chat=chat,
                completeness_threshold=self.settings.completeness_threshold,
            )
        return self._orchestrators[identity]

    def global_chat(self) -> ChatSessionManager:
        if self._global_chat is None:
            self._global_chat = ChatSessionManager.global_session(self.api, self.cache)
        return self._global_chat

    async def aclose(self) -> None:
        for orchestrator in self._orchestrators.values():
            orchestrator.stop_observing()
            await orchestrator.drain()
        await self.api.aclose()


__all__ = ["MurmurApp"]
