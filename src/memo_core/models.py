"""Dataclasses shared by the client and the brain service."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


@dataclass(slots=True)
class SpeakerInterval:
    """Speaker-attributed interval as returned by the transcription service."""

    text: str
    start: float
    end: float
    speaker: Optional[str] = None


@dataclass(slots=True)
class TranscriptSegment:
    """One time-stamped piece of transcript used for karaoke highlighting."""

    text: str
    start_seconds: float
    duration_seconds: float
    speaker: Optional[str] = None

    @property
    def end_seconds(self) -> float:
        return self.start_seconds + self.duration_seconds


@dataclass(slots=True)
class SavedTranscript:
    full_text: str
    segments: Optional[List[TranscriptSegment]] = None


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(slots=True)
class ChatMessage:
    role: ChatRole
    text: str
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(slots=True)
class ChatSessionState:
    messages: List[ChatMessage] = field(default_factory=list)
    session_id: Optional[str] = None


@dataclass(slots=True)
class ReportTask:
    title: str
    is_completed: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass(slots=True)
class DailyReport:
    """Aggregated summary of every recording captured on one calendar day."""

    date: datetime
    markdown_content: str
    extracted_tasks: List[ReportTask] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def day(self) -> date:
        return self.date.date()


class TranscriptionState(str, Enum):
    IDLE = "idle"
    CACHE_CHECK = "cache_check"
    LOADED = "loaded"
    CONNECTING = "connecting"
    TRANSCRIBING = "transcribing"
    FALLBACK_ACTIVE = "fallback_active"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def in_flight(self) -> bool:
        return self in {
            TranscriptionState.CONNECTING,
            TranscriptionState.TRANSCRIBING,
            TranscriptionState.FALLBACK_ACTIVE,
        }


__all__ = [
    "ChatMessage",
    "ChatRole",
    "ChatSessionState",
    "DailyReport",
    "ReportTask",
    "SavedTranscript",
    "SpeakerInterval",
    "TranscriptSegment",
    "TranscriptionState",
]
