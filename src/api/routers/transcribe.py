"""Transcription endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..deps.services import get_transcript_service
from ..schemas import SpeakerSegmentModel, TranscribeRequest, TranscribeResponse
from ..services.transcript_service import RecordingNotFound, TranscriptService

router = APIRouter(tags=["transcribe"])


@router.post("/transcribe", response_model=TranscribeResponse)
async def transcribe_recording(
    body: TranscribeRequest,
    service: TranscriptService = Depends(get_transcript_service),
):
    if not body.recording_identity.strip():
        raise HTTPException(status_code=400, detail="Missing recordingIdentity")
    try:
        text, intervals, cached = await service.transcribe(body.recording_identity, force=body.force)
    except RecordingNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    segments = None
    if intervals:
        segments = [
            SpeakerSegmentModel(text=item.text, start=item.start, end=item.end, speaker=item.speaker)
            for item in intervals
        ]
    return TranscribeResponse(transcript=text, speaker_segments=segments, cached=cached)
