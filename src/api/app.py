"""FastAPI application for the local brain service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .metrics import instrument_app, router as metrics_router
from .routers import chat, summarize, transcribe
from .schemas import HealthResponse
from .services.brain_service import BrainError
from .services.transcript_service import TranscriptService
from .settings import get_settings

LOGGER = logging.getLogger("murmur.api")


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings = app.dependency_overrides.get(get_settings, get_settings)()
        service = TranscriptService(settings)
        app.state.transcript_service = service
        try:
            service.sync_knowledge()
        except OSError as exc:
            LOGGER.error("Knowledge sync failed: %s", exc)
        yield

    settings = get_settings()
    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        return JSONResponse(status_code=400, content={"error": f"{field}: {message}" if field else message})

    @app.exception_handler(BrainError)
    async def brain_error(request: Request, exc: BrainError) -> JSONResponse:
        LOGGER.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.exception("%s %s crashed", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": str(exc) or exc.__class__.__name__})

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    app.include_router(transcribe.router)
    app.include_router(summarize.router)
    app.include_router(chat.router)
    app.include_router(metrics_router)
    instrument_app(app)
    return app
