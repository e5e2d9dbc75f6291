"""Per-recording and daily summary endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..deps.services import get_brain_service
from ..schemas import DailySummarizeRequest, SummarizeRequest, SummarizeResponse
from ..services.brain_service import BrainService

router = APIRouter(tags=["summarize"])


@router.post("/summarize", response_model=SummarizeResponse)
async def summarize(
    body: SummarizeRequest,
    service: BrainService = Depends(get_brain_service),
):
    if not body.transcript.strip():
        raise HTTPException(status_code=400, detail="Missing transcript")
    summary, session_id, cached = await service.summarize(
        body.transcript, body.recording_identity, body.session_id
    )
    return SummarizeResponse(summary=summary, session_id=session_id or None, cached=cached)


@router.post("/daily_summarize", response_model=SummarizeResponse)
async def daily_summarize(
    body: DailySummarizeRequest,
    service: BrainService = Depends(get_brain_service),
):
    transcripts = [text for text in body.transcripts if text.strip()]
    if not transcripts:
        raise HTTPException(status_code=400, detail="Missing or empty transcripts array")
    summary, session_id = await service.daily_summarize(transcripts, body.date_label, body.session_id)
    return SummarizeResponse(summary=summary, session_id=session_id)
