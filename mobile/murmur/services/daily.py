"""Roll every transcript recorded on one day into a single report."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import List, Optional

from src.memo_core.cache_store import CacheStore
from src.memo_core.models import DailyReport

from ..store.recordings import RecordingLibrary
from ..store.report_store import ReportStore
from .network import ApiError
from .summarizer import SummarizationClient

LOGGER = logging.getLogger("murmur.daily")


def date_label(day: date) -> str:
    return f"{day.strftime('%B')} {day.day}, {day.year}"


class DailyAggregator:
    def __init__(
        self,
        *,
        library: RecordingLibrary,
        cache: CacheStore,
        reports: ReportStore,
        summarizer: SummarizationClient,
    ) -> None:
        self.library = library
        self.cache = cache
        self.reports = reports
        self.summarizer = summarizer
        self._generating = False

    def collect_transcripts(self, day: date) -> List[str]:
        """Cached transcript texts of recordings created on ``day``, oldest first."""

        texts: List[str] = []
        for recording in reversed(self.library.created_on(day)):
            saved = self.cache.load_transcript(recording.identity)
            if saved is None or not saved.full_text.strip():
                continue
            texts.append(saved.full_text)
        return texts

    async def generate_if_missing(self, day: Optional[date] = None) -> Optional[DailyReport]:
        """Return the day's report, generating it first when none exists yet.

        Returns None when there is nothing to summarize, when another
        generation is already running, or when the service call fails.
        """

        day = day or date.today()
        existing = await asyncio.to_thread(self.reports.find_for_day, day)
        if existing is not None:
            LOGGER.info("Report for %s already exists: %s", day.isoformat(), existing.id)
            return existing
        if self._generating:
            return None
        self._generating = True
        try:
            transcripts = await asyncio.to_thread(self.collect_transcripts, day)
            if not transcripts:
                LOGGER.info("No transcripts recorded on %s", day.isoformat())
                return None
            try:
                summary = await self.summarizer.daily_summarize(transcripts, date_label(day))
            except ApiError as exc:
                LOGGER.warning("Could not generate daily report for %s: %s", day.isoformat(), exc)
                return None
            report_date = datetime.now() if day == date.today() else datetime.combine(day, datetime.min.time())
            report = DailyReport(date=report_date, markdown_content=summary)
            await asyncio.to_thread(self.reports.save, report)
            return report
        finally:
            self._generating = False

    def list_reports(self) -> List[DailyReport]:
        return self.reports.list()


__all__ = ["DailyAggregator", "date_label"]
