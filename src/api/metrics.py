"""Prometheus metrics for the brain service."""

from __future__ import annotations

import time

from fastapi import APIRouter, FastAPI, Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Summary,
    generate_latest,
)

METRICS_PATH = "/metrics"

ENDPOINT_CALLS = Counter(
    "brain_requests_total",
    "Brain service requests by route template and outcome",
    labelnames=("route", "status"),
)

ENDPOINT_SECONDS = Histogram(
    "brain_request_seconds",
    "Brain service request time by route template",
    labelnames=("route",),
    buckets=(0.05, 0.25, 1, 5, 15, 60, 180, 600),
)

IN_FLIGHT = Gauge(
    "brain_requests_in_flight",
    "Requests currently being served (transcriptions can take minutes)",
)

TRANSCRIBE_COUNTER = Counter(
    "brain_transcriptions_total",
    "Whisper transcriptions run by /transcribe",
    labelnames=("status",),
)

TRANSCRIBE_DURATION = Summary(
    "brain_transcription_seconds",
    "Time spent running Whisper for /transcribe",
)

LLM_COUNTER = Counter(
    "brain_llm_calls_total",
    "Language model calls",
    labelnames=("kind", "status"),
)

router = APIRouter()


@router.get(METRICS_PATH, include_in_schema=False)
async def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def _route_label(request: Request) -> str:
    route = request.scope.get("route")
    # unmatched paths share one label so random URLs cannot grow the series
    return getattr(route, "path", "unmatched")


def instrument_app(app: FastAPI) -> FastAPI:
    @app.middleware("http")
    async def record_request(request: Request, call_next):
        if request.url.path == METRICS_PATH:
            return await call_next(request)
        IN_FLIGHT.inc()
        start = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
            return response
        finally:
            IN_FLIGHT.dec()
            route = _route_label(request)
            ENDPOINT_CALLS.labels(route=route, status=status).inc()
            ENDPOINT_SECONDS.labels(route=route).observe(time.perf_counter() - start)

    return app
