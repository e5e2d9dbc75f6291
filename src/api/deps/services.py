"""Service instances shared across requests of one app."""

from __future__ import annotations

from fastapi import Depends, Request

from ..services.brain_service import BrainService
from ..services.transcript_service import TranscriptService
from ..settings import ProxySettings, get_settings


def get_transcript_service(
    request: Request, settings: ProxySettings = Depends(get_settings)
) -> TranscriptService:
    service = getattr(request.app.state, "transcript_service", None)
    if service is None or service.settings is not settings:
        service = TranscriptService(settings)
        request.app.state.transcript_service = service
    return service


def get_brain_service(
    request: Request, settings: ProxySettings = Depends(get_settings)
) -> BrainService:
    service = getattr(request.app.state, "brain_service", None)
    if service is None or service.settings is not settings:
        service = BrainService(settings)
        request.app.state.brain_service = service
    return service
