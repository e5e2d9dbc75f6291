import asyncio
import os
from datetime import date, datetime

import httpx
import pytest

from mobile.murmur.app import MurmurApp
from mobile.murmur.store import recordings
from mobile.murmur.store.recordings import RecordingLibrary, audio_duration
from mobile.murmur.store.report_store import ReportStore
from src.memo_core.models import DailyReport, ReportTask


def test_recording_library_lists_audio_newest_first(tmp_path):
    for index, name in enumerate(["a.m4a", "b.wav", "notes.txt", ".hidden.m4a", "a.transcript"]):
        path = tmp_path / name
        path.write_bytes(b"\x00")
        os.utime(path, (1_700_000_000 + index * 60, 1_700_000_000 + index * 60))

    library = RecordingLibrary(tmp_path)
    assert [item.name for item in library.list()] == ["b.wav", "a.m4a"]
    assert RecordingLibrary(tmp_path / "missing").list() == []

    library.delete(library.list()[0])
    assert [item.name for item in library.list()] == ["a.m4a"]


def test_audio_duration_of_unreadable_file_is_none(tmp_path):
    path = tmp_path / "broken.m4a"
    path.write_bytes(b"not audio")
    assert audio_duration(path) is None


def test_audio_duration_decodes_what_soundfile_cannot_read(tmp_path, monkeypatch):
    faster_whisper = pytest.importorskip("faster_whisper")
    path = tmp_path / "memo.m4a"
    path.write_bytes(b"\x00")

    def no_aac(_path):
        raise RuntimeError("Format not recognised")

    decoded = []

    def fake_decode(source, sampling_rate=16000):
        decoded.append((source, sampling_rate))
        return [0.0] * (sampling_rate * 90)

    monkeypatch.setattr(recordings.sf, "info", no_aac)
    monkeypatch.setattr(faster_whisper, "decode_audio", fake_decode)

    assert audio_duration(path) == 90.0
    assert decoded == [(str(path), recordings.DECODE_SAMPLE_RATE)]


def test_report_store_skips_corrupt_files(tmp_path):
    store = ReportStore(tmp_path)
    older = DailyReport(date=datetime(2026, 10, 17, 21, 0), markdown_content="yesterday")
    newer = DailyReport(
        date=datetime(2026, 10, 18, 21, 0),
        markdown_content="today",
        extracted_tasks=[ReportTask(title="call Ana")],
    )
    store.save(older)
    store.save(newer)
    (tmp_path / "report_broken.json").write_text("{", encoding="utf-8")

    listed = store.list()
    assert [report.markdown_content for report in listed] == ["today", "yesterday"]
    assert listed[0].extracted_tasks[0].title == "call Ana"
    assert store.find_for_day(date(2026, 10, 17)).id == older.id
    assert store.find_for_day(date(2026, 10, 16)) is None


def test_app_reuses_orchestrator_per_recording(client_settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"status": "ok"}))
    app = MurmurApp(client_settings, http_client=httpx.AsyncClient(transport=transport))

    identity = app.resolve("memo.m4a")
    assert identity.endswith("memo.m4a")
    assert app.orchestrator(identity) is app.orchestrator(identity)
    assert app.orchestrator(identity).chat.identity == identity
    assert app.global_chat() is app.global_chat()
    assert asyncio.run(app.api.health()) is True
    asyncio.run(app.aclose())
