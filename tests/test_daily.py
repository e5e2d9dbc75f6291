import asyncio
import os
from datetime import date, datetime, timedelta

from mobile.murmur.services.daily import DailyAggregator, date_label
from mobile.murmur.services.network import ServerError
from mobile.murmur.store.recordings import RecordingLibrary
from mobile.murmur.store.report_store import ReportStore
from src.memo_core.models import SavedTranscript


class FakeSummarizer:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def daily_summarize(self, transcripts, label):
        self.calls.append((list(transcripts), label))
        if self.error is not None:
            raise self.error
        return "**Key items:**\n- shipped it"


def _recording(root, name, when, cache=None, text=None):
    path = root / name
    path.write_bytes(b"\x00")
    stamp = when.timestamp()
    os.utime(path, (stamp, stamp))
    if cache is not None and text is not None:
        cache.save_transcript(str(path), SavedTranscript(full_text=text))
    return path


def _aggregator(client_settings, cache, summarizer):
    return DailyAggregator(
        library=RecordingLibrary(client_settings.recordings_root),
        cache=cache,
        reports=ReportStore(client_settings.reports_dir),
        summarizer=summarizer,
    )


def test_date_label():
    assert date_label(date(2026, 10, 18)) == "October 18, 2026"
    assert date_label(date(2026, 3, 5)) == "March 5, 2026"


def test_generates_once_per_day(client_settings, cache, tmp_path):
    root = tmp_path / "recordings"
    today = datetime.now().replace(hour=12, minute=0, second=0, microsecond=0)
    _recording(root, "late.m4a", today + timedelta(hours=2), cache, "afternoon sync")
    _recording(root, "early.m4a", today - timedelta(hours=3), cache, "morning standup")
    _recording(root, "blank.m4a", today, cache, "   ")
    _recording(root, "untranscribed.m4a", today)

    summarizer = FakeSummarizer()
    aggregator = _aggregator(client_settings, cache, summarizer)

    async def run():
        first = await aggregator.generate_if_missing()
        second = await aggregator.generate_if_missing()
        return first, second

    first, second = asyncio.run(run())
    assert first is not None
    assert second.id == first.id
    assert first.markdown_content.startswith("**Key items:**")
    assert summarizer.calls == [(["morning standup", "afternoon sync"], date_label(date.today()))]
    assert len(list((tmp_path / "reports").glob("report_*.json"))) == 1
    assert [report.id for report in aggregator.list_reports()] == [first.id]


def test_nothing_to_summarize(client_settings, cache):
    summarizer = FakeSummarizer()
    aggregator = _aggregator(client_settings, cache, summarizer)
    assert asyncio.run(aggregator.generate_if_missing()) is None
    assert summarizer.calls == []


def test_past_day_report_is_dated_midnight(client_settings, cache, tmp_path):
    day = date.today() - timedelta(days=2)
    _recording(tmp_path / "recordings", "old.m4a", datetime.combine(day, datetime.min.time()) + timedelta(hours=9),
               cache, "old notes")
    aggregator = _aggregator(client_settings, cache, FakeSummarizer())

    report = asyncio.run(aggregator.generate_if_missing(day))
    assert report.date == datetime.combine(day, datetime.min.time())
    assert report.day == day


def test_service_failure_returns_none(client_settings, cache, tmp_path):
    _recording(tmp_path / "recordings", "a.m4a", datetime.now(), cache, "notes")
    aggregator = _aggregator(client_settings, cache, FakeSummarizer(error=ServerError("down", 500)))
    assert asyncio.run(aggregator.generate_if_missing()) is None
    assert aggregator.list_reports() == []
