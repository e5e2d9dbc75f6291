"""JSON encodings for the sidecar artifacts and daily reports."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models import (
    ChatMessage,
    ChatRole,
    ChatSessionState,
    DailyReport,
    ReportTask,
    SavedTranscript,
    SpeakerInterval,
    TranscriptSegment,
)
from .segments import merge_segments


class CodecError(ValueError):
    pass


def parse_intervals(data: Any) -> List[SpeakerInterval]:
    """Read ``speaker_segments`` items, skipping anything malformed."""

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        return []
    intervals: List[SpeakerInterval] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            start = float(item.get("start", 0.0))
            end = float(item.get("end", start))
        except (TypeError, ValueError):
            continue
        speaker = item.get("speaker")
        intervals.append(
            SpeakerInterval(
                text=str(item.get("text", "")),
                start=start,
                end=end,
                speaker=str(speaker) if speaker is not None else None,
            )
        )
    return intervals


def encode_transcript(saved: SavedTranscript) -> str:
    speaker_segments = None
    if saved.segments is not None:
        # "duration" is kept alongside "end" so decoding does not re-derive it
        speaker_segments = [
            {
                "text": segment.text,
                "start": segment.start_seconds,
                "end": segment.end_seconds,
                "duration": segment.duration_seconds,
                "speaker": segment.speaker,
            }
            for segment in saved.segments
        ]
    return json.dumps(
        {"transcript": saved.full_text, "speaker_segments": speaker_segments},
        ensure_ascii=False,
    )


def decode_transcript(raw: bytes | str) -> Optional[SavedTranscript]:
    """Decode a ``.transcript`` sidecar.

    Structured JSON is tried first. Older caches stored the bare transcript
    text, so anything non-empty that does not look like JSON is taken as the
    full text with no segments.
    """

    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("transcript"), str):
        segments_payload = payload.get("speaker_segments")
        segments = None
        if segments_payload is not None:
            segments = _decode_segments(payload["transcript"], segments_payload)
        return SavedTranscript(full_text=payload["transcript"], segments=segments)
    stripped = text.strip()
    if not stripped or stripped.startswith("{"):
        return None
    return SavedTranscript(full_text=text, segments=None)


def _decode_segments(full_text: str, data: Any) -> List[TranscriptSegment]:
    """Segments from stored intervals; a stored ``duration`` wins over ``end - start``."""

    items = [data] if isinstance(data, dict) else data if isinstance(data, list) else []
    segments: List[TranscriptSegment] = []
    for item in items:
        intervals = parse_intervals(item)
        if not intervals:
            continue
        segment = merge_segments(full_text, intervals)[0]
        duration = item.get("duration")
        if isinstance(duration, (int, float)) and not isinstance(duration, bool) and duration >= 0:
            segment.duration_seconds = float(duration)
        segments.append(segment)
    return segments or merge_segments(full_text)


def encode_chat(state: ChatSessionState) -> str:
    return json.dumps(
        {
            "messages": [
                {
                    "role": message.role.value,
                    "text": message.text,
                    "createdAt": message.created_at.isoformat(),
                }
                for message in state.messages
            ],
            "sessionId": state.session_id,
        },
        ensure_ascii=False,
    )


def decode_chat(raw: bytes | str) -> ChatSessionState:
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return ChatSessionState()
    if isinstance(payload, list):
        # global history used to be stored as a bare message list
        payload = {"messages": payload}
    if not isinstance(payload, dict):
        return ChatSessionState()
    messages: List[ChatMessage] = []
    for item in payload.get("messages") or []:
        if not isinstance(item, dict):
            continue
        try:
            role = ChatRole(item.get("role"))
        except ValueError:
            continue
        messages.append(
            ChatMessage(
                role=role,
                text=str(item.get("text", "")),
                created_at=_parse_datetime(item.get("createdAt")) or datetime.now(),
            )
        )
    session_id = payload.get("sessionId")
    return ChatSessionState(messages=messages, session_id=str(session_id) if session_id else None)


def encode_report(report: DailyReport) -> str:
    return json.dumps(
        {
            "id": report.id,
            "date": report.date.isoformat(),
            "markdownContent": report.markdown_content,
            "extractedTasks": [
                {"id": task.id, "title": task.title, "isCompleted": task.is_completed}
                for task in report.extracted_tasks
            ],
        },
        ensure_ascii=False,
        indent=2,
    )


def decode_report(raw: bytes | str) -> DailyReport:
    try:
        payload: Dict[str, Any] = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CodecError(f"Invalid report: {exc}") from exc
    if not isinstance(payload, dict):
        raise CodecError("Invalid report: expected an object")
    report_date = _parse_datetime(payload.get("date"))
    if report_date is None or "id" not in payload:
        raise CodecError("Invalid report: missing id or date")
    tasks = [
        ReportTask(
            id=str(item.get("id")),
            title=str(item.get("title", "")),
            is_completed=bool(item.get("isCompleted", False)),
        )
        for item in payload.get("extractedTasks") or []
        if isinstance(item, dict)
    ]
    return DailyReport(
        id=str(payload["id"]),
        date=report_date,
        markdown_content=str(payload.get("markdownContent", "")),
        extracted_tasks=tasks,
    )


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


__all__ = [
    "CodecError",
    "decode_chat",
    "decode_report",
    "decode_transcript",
    "encode_chat",
    "encode_report",
    "encode_transcript",
    "parse_intervals",
]
