import json
from datetime import datetime

import pytest

from src.memo_core.codec import (
    CodecError,
    decode_chat,
    decode_report,
    decode_transcript,
    encode_chat,
    encode_report,
    encode_transcript,
)
from src.memo_core.models import (
    ChatMessage,
    ChatRole,
    ChatSessionState,
    DailyReport,
    ReportTask,
    SavedTranscript,
    TranscriptSegment,
)


def test_transcript_roundtrip_with_segments():
    saved = SavedTranscript(
        full_text="hello world",
        segments=[
            TranscriptSegment(text="hello", start_seconds=0.0, duration_seconds=0.5, speaker="A"),
            TranscriptSegment(text="world", start_seconds=0.5, duration_seconds=1.25, speaker="B"),
        ],
    )
    assert decode_transcript(encode_transcript(saved)) == saved


def test_transcript_roundtrip_keeps_inexact_durations():
    saved = SavedTranscript(
        full_text="a b",
        segments=[
            TranscriptSegment(text="a", start_seconds=0.1, duration_seconds=0.2, speaker="A"),
            TranscriptSegment(text="b", start_seconds=0.3, duration_seconds=0.7, speaker=None),
        ],
    )
    back = decode_transcript(encode_transcript(saved))
    assert back == saved
    assert back.segments[0].duration_seconds == 0.2


def test_transcript_without_stored_duration_uses_end():
    raw = json.dumps(
        {"transcript": "hi", "speaker_segments": [{"text": "hi", "start": 1.0, "end": 2.5, "speaker": "S0"}]}
    )
    saved = decode_transcript(raw)
    assert saved.segments[0].duration_seconds == 1.5
    assert saved.segments[0].speaker == "S0"


def test_transcript_without_segments_stores_null():
    raw = encode_transcript(SavedTranscript(full_text="hello world"))
    assert json.loads(raw) == {"transcript": "hello world", "speaker_segments": None}
    assert decode_transcript(raw) == SavedTranscript(full_text="hello world", segments=None)


def test_legacy_plain_text_transcript():
    saved = decode_transcript("just some old text".encode("utf-8"))
    assert saved is not None
    assert saved.full_text == "just some old text"
    assert not saved.segments


def test_unreadable_transcript_is_absent():
    assert decode_transcript(b"") is None
    assert decode_transcript(b"{broken json") is None


def test_chat_roundtrip():
    created = datetime(2026, 10, 18, 9, 30)
    state = ChatSessionState(
        messages=[
            ChatMessage(role=ChatRole.USER, text="Q", created_at=created),
            ChatMessage(role=ChatRole.ASSISTANT, text="A", created_at=created),
        ],
        session_id="abc",
    )
    payload = json.loads(encode_chat(state))
    assert payload["sessionId"] == "abc"
    assert payload["messages"][0] == {"role": "user", "text": "Q", "createdAt": created.isoformat()}
    assert decode_chat(encode_chat(state)) == state


def test_chat_decode_tolerates_garbage():
    assert decode_chat(b"not json") == ChatSessionState()
    legacy = decode_chat(json.dumps([{"role": "user", "text": "hi"}, {"role": "robot", "text": "?"}]))
    assert [message.text for message in legacy.messages] == ["hi"]
    assert legacy.session_id is None


def test_report_roundtrip():
    report = DailyReport(
        date=datetime(2026, 10, 18, 21, 0),
        markdown_content="**Key items:**\n- shipped",
        extracted_tasks=[ReportTask(title="follow up", is_completed=True)],
    )
    payload = json.loads(encode_report(report))
    assert set(payload) == {"id", "date", "markdownContent", "extractedTasks"}
    assert decode_report(encode_report(report)) == report


def test_report_decode_rejects_missing_fields():
    with pytest.raises(CodecError):
        decode_report(json.dumps({"markdownContent": "x"}))
    with pytest.raises(CodecError):
        decode_report("nope")
