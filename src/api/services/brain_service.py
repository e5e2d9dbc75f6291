"""Summaries and chat backed by an OpenAI-compatible chat model."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from src.memo_core.prompts import (
    DAILY_PROMPT,
    SUMMARY_PROMPT,
    combine_transcripts,
)

from ..metrics import LLM_COUNTER
from ..settings import ProxySettings
from .transcript_service import build_cache

LOGGER = logging.getLogger("murmur.brain")

NO_REPLY = "(no reply)"


class BrainError(RuntimeError):
    pass


class SessionStore:
    """Chat history per session id, one JSON file each."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, session_id: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", session_id)
        return self.directory / f"{safe}.json"

    def load(self, session_id: str) -> List[Dict[str, str]]:
        path = self._path(session_id)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            LOGGER.warning("Discarding unreadable session %s", session_id)
            return []
        return [item for item in data if isinstance(item, dict)] if isinstance(data, list) else []

    def save(self, session_id: str, messages: List[Dict[str, str]]) -> None:
        self._path(session_id).write_text(json.dumps(messages, ensure_ascii=False), encoding="utf-8")


class BrainService:
    def __init__(self, settings: ProxySettings, client: Optional[AsyncOpenAI] = None) -> None:
        self.settings = settings
        self.cache = build_cache(settings)
        self.sessions = SessionStore(Path(settings.data_dir) / "sessions")
        self.knowledge_dir = Path(settings.knowledge_dir)
        self._client = client
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    def _llm(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.settings.openai_api_key:
                raise BrainError("OPENAI_API_KEY is missing")
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.openai_base_url or None,
                timeout=self.settings.llm_timeout_sec,
            )
        return self._client

    async def summarize(
        self, transcript: str, identity: Optional[str], session_id: Optional[str]
    ) -> tuple[str, str, bool]:
        """Return ``(summary, session_id, cached)``."""

        if identity:
            cached = self.cache.load_summary(identity)
            if cached:
                LOGGER.info("Loaded cached summary (%d chars)", len(cached))
                return cached, session_id or "", True
        sid = session_id or _fresh_session("summary")
        LOGGER.info("Summarizing %d chars (session %s)", len(transcript), sid)
        summary, sid = await self.chat(SUMMARY_PROMPT.format(transcript=transcript.strip()), sid, kind="summary")
        if identity:
            self.cache.save_summary(identity, summary)
        return summary, sid, False

    async def daily_summarize(
        self, transcripts: Sequence[str], date_label: Optional[str], session_id: Optional[str]
    ) -> tuple[str, str]:
        combined = combine_transcripts(transcripts)
        sid = session_id or _fresh_session("daily")
        LOGGER.info(
            "Daily report for %d transcript(s), %d chars (session %s)", len(transcripts), len(combined), sid
        )
        prompt = DAILY_PROMPT.format(date_label=date_label or "today", combined=combined)
        return await self.chat(prompt, sid, kind="daily")

    async def chat(
        self,
        message: str,
        session_id: Optional[str] = None,
        *,
        use_global_scope: bool = False,
        kind: str = "chat",
    ) -> tuple[str, str]:
        """Send one user turn in ``session_id`` (new when empty); return ``(text, session_id)``."""

        sid = session_id or str(uuid.uuid4())
        async with self._session_lock(sid):
            history = self.sessions.load(sid)
            if not history and use_global_scope:
                history.append({"role": "system", "content": self._corpus_prompt()})
            history.append({"role": "user", "content": message})
            try:
                response = await self._llm().chat.completions.create(
                    model=self.settings.openai_chat_model,
                    messages=history,
                )
            except OpenAIError as exc:
                LLM_COUNTER.labels(kind=kind, status="error").inc()
                raise BrainError(str(exc)) from exc
            LLM_COUNTER.labels(kind=kind, status="success").inc()
            choices = response.choices or []
            text = (choices[0].message.content or "").strip() if choices else ""
            text = text or NO_REPLY
            history.append({"role": "assistant", "content": text})
            self.sessions.save(sid, history)
        return text, sid

    @asynccontextmanager
    async def _session_lock(self, sid: str) -> AsyncIterator[None]:
        """Serialize turns of one session; the lock is dropped with its last user."""

        lock = self._locks.setdefault(sid, asyncio.Lock())
        self._lock_users[sid] = self._lock_users.get(sid, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[sid] -= 1
            if not self._lock_users[sid]:
                del self._lock_users[sid]
                del self._locks[sid]

    def _corpus_prompt(self) -> str:
        """System context for a new global session: the local knowledge base.

        The scope directive itself arrives with the first user turn.
        """

        budget = self.settings.knowledge_max_chars
        parts: List[str] = []
        for path in sorted(self.knowledge_dir.glob("*.txt")):
            try:
                text = path.read_text(encoding="utf-8").strip()
            except OSError:
                continue
            if not text:
                continue
            entry = f"## {path.stem}\n{text}"
            if len(entry) > budget:
                break
            parts.append(entry)
            budget -= len(entry)
        corpus = "\n\n".join(parts) if parts else "(the knowledge base is empty)"
        return f"Knowledge base (transcripts of the user's recordings):\n\n{corpus}"


def _fresh_session(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"
