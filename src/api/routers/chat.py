"""Stateful chat endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from ..deps.services import get_brain_service
from ..schemas import ChatRequest, ChatResponse
from ..services.brain_service import BrainService

LOGGER = logging.getLogger("murmur.chat")

router = APIRouter(tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    service: BrainService = Depends(get_brain_service),
):
    message = body.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="Missing message")
    LOGGER.info("Chat: %r (session: %s)", message[:60], body.session_id or "new")
    text, session_id = await service.chat(
        message,
        body.session_id,
        use_global_scope=bool(body.use_global_scope) and not body.session_id,
    )
    return ChatResponse(text=text, session_id=session_id)
