"""Async HTTP client for the local brain service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx

from src.memo_core.codec import parse_intervals
from src.memo_core.models import SpeakerInterval

from ..store.settings_store import ClientSettings

LOGGER = logging.getLogger("murmur.network")


class ApiError(Exception):
    pass


class NotFoundError(ApiError):
    """The referenced recording does not exist on the service side."""


class ConnectivityError(ApiError):
    """The service could not be reached or did not answer in time."""


class ServerError(ApiError):
    """Non-2xx response; the message is the service's ``error`` string."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(ServerError):
    pass


@dataclass(slots=True)
class TranscribeResult:
    text: str
    intervals: List[SpeakerInterval] = field(default_factory=list)
    cached: bool = False


@dataclass(slots=True)
class ChatReply:
    text: str
    session_id: str


class ApiClient:
    def __init__(self, settings: ClientSettings, *, client: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings
        self._client = client or httpx.AsyncClient(timeout=settings.request_timeout)

    def _url(self, path: str) -> str:
        base = self.settings.server_url.rstrip("/")
        if not base:
            raise ApiError("Server URL missing")
        return f"{base}{path}"

    async def health(self) -> bool:
        try:
            data = await self._request("GET", "/health", None, self.settings.request_timeout)
        except ApiError:
            return False
        return data.get("status") == "ok"

    async def transcribe(self, identity: str, *, force: bool = False) -> TranscribeResult:
        body = {"recordingIdentity": identity, "force": force}
        data = await self._request("POST", "/transcribe", body, self.settings.transcribe_timeout)
        text = data.get("transcript")
        if not isinstance(text, str):
            raise DecodeError("Invalid response: missing transcript")
        return TranscribeResult(
            text=text,
            intervals=parse_intervals(data.get("speaker_segments")),
            cached=bool(data.get("cached", False)),
        )

    async def summarize(self, transcript: str, identity: str, session_id: str) -> str:
        body = {"transcript": transcript, "recordingIdentity": identity, "sessionId": session_id}
        data = await self._request("POST", "/summarize", body, self.settings.request_timeout)
        return _require_str(data, "summary")

    async def daily_summarize(self, transcripts: Sequence[str], date_label: str, session_id: str) -> str:
        body = {"transcripts": list(transcripts), "dateLabel": date_label, "sessionId": session_id}
        data = await self._request("POST", "/daily_summarize", body, self.settings.request_timeout)
        return _require_str(data, "summary")

    async def chat(
        self,
        message: str,
        *,
        session_id: Optional[str] = None,
        use_global_scope: Optional[bool] = None,
    ) -> ChatReply:
        body: Dict[str, Any] = {"message": message}
        if session_id:
            body["sessionId"] = session_id
        if use_global_scope is not None:
            body["useGlobalScope"] = use_global_scope
        data = await self._request("POST", "/chat", body, self.settings.request_timeout)
        return ChatReply(text=_require_str(data, "text"), session_id=str(data.get("sessionId") or ""))

    async def _request(
        self, method: str, path: str, body: Optional[Dict[str, Any]], timeout: float
    ) -> Dict[str, Any]:
        try:
            resp = await self._client.request(method, self._url(path), json=body, timeout=timeout)
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            LOGGER.info("%s %s unreachable: %s", method, path, exc)
            raise ConnectivityError(str(exc) or exc.__class__.__name__) from exc
        except httpx.HTTPError as exc:
            raise ApiError(str(exc)) from exc
        if resp.status_code != 200:
            message = _error_message(resp)
            if resp.status_code == 404:
                raise NotFoundError(message)
            raise ServerError(message, resp.status_code)
        try:
            data = resp.json()
        except ValueError as exc:
            raise DecodeError(f"Invalid response: {exc}") from exc
        if not isinstance(data, dict):
            raise DecodeError("Invalid response: expected a JSON object")
        return data

    async def aclose(self) -> None:
        await self._client.aclose()


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return f"HTTP {resp.status_code}"


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise DecodeError(f"Invalid response: missing {key}")
    return value


__all__ = [
    "ApiClient",
    "ApiError",
    "ChatReply",
    "ConnectivityError",
    "DecodeError",
    "NotFoundError",
    "ServerError",
    "TranscribeResult",
]
