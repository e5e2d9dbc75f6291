"""Pydantic schemas for the brain service contract."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SpeakerSegmentModel(BaseModel):
    text: str
    start: float
    end: float
    speaker: Optional[str] = None


class TranscribeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recording_identity: str = Field(alias="recordingIdentity")
    force: bool = False


class TranscribeResponse(BaseModel):
    transcript: str
    speaker_segments: Optional[List[SpeakerSegmentModel]] = None
    cached: bool = False


class SummarizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transcript: str
    recording_identity: Optional[str] = Field(default=None, alias="recordingIdentity")
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class SummarizeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    session_id: Optional[str] = Field(default=None, serialization_alias="sessionId")
    cached: bool = False


class DailySummarizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transcripts: List[str]
    date_label: Optional[str] = Field(default=None, alias="dateLabel")
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    use_global_scope: Optional[bool] = Field(default=None, alias="useGlobalScope")


class ChatResponse(BaseModel):
    text: str
    session_id: str = Field(serialization_alias="sessionId")


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    error: str
