"""Per-recording and per-day summaries from the brain service."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Sequence

from .network import ApiClient

LOGGER = logging.getLogger("murmur.summarizer")


def new_session_id(prefix: str) -> str:
    """Throwaway backend session so a repeated summary is never treated as answered."""

    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


class SummarizationClient:
    """Thin wrapper over the summary endpoints.

    Callers check the summary cache and guard against concurrent requests for
    the same recording; this class always goes to the network.
    """

    def __init__(self, api: ApiClient) -> None:
        self.api = api

    async def summarize(self, transcript: str, identity: str) -> str:
        session_id = new_session_id("summary")
        LOGGER.info("Summarizing %d chars for %s (session %s)", len(transcript), identity, session_id)
        return await self.api.summarize(transcript, identity, session_id)

    async def daily_summarize(self, transcripts: Sequence[str], date_label: str) -> str:
        texts = [text for text in transcripts if text.strip()]
        session_id = new_session_id("daily")
        LOGGER.info("Daily report for %s from %d transcript(s) (session %s)", date_label, len(texts), session_id)
        return await self.api.daily_summarize(texts, date_label, session_id)


__all__ = ["SummarizationClient", "new_session_id"]
