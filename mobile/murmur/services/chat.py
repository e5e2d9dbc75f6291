"""Conversation state for one recording, or for the whole local corpus."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from src.memo_core.cache_store import CacheStore
from src.memo_core.codec import encode_chat
from src.memo_core.models import ChatMessage, ChatRole, ChatSessionState
from src.memo_core.prompts import with_global_directive, with_transcript_context

from .network import ApiClient, ApiError

LOGGER = logging.getLogger("murmur.chat")

MessageListener = Callable[[ChatMessage], None]


class ChatScope(str, Enum):
    RECORDING = "recording"
    GLOBAL = "global"


class ChatBusyError(RuntimeError):
    pass


class ChatSessionManager:
    """Message history plus the backend session handle for one scope.

    The ``.chat`` artifact is the source of truth: history is persisted before
    each request and again after the reply, and ``load()`` rebuilds the
    in-memory view from it.
    """

    def __init__(
        self,
        api: ApiClient,
        cache: CacheStore,
        *,
        identity: Optional[str] = None,
    ) -> None:
        self.api = api
        self.cache = cache
        self.identity = identity
        self.scope = ChatScope.RECORDING if identity else ChatScope.GLOBAL
        self.key: Path = cache.chat_key(identity) if identity else cache.global_chat_key()
        self._state = ChatSessionState()
        self._transcript_context: Optional[str] = None
        self._sending = False
        self._listeners: List[MessageListener] = []

    @classmethod
    def for_recording(cls, api: ApiClient, cache: CacheStore, identity: str) -> "ChatSessionManager":
        return cls(api, cache, identity=identity)

    @classmethod
    def global_session(cls, api: ApiClient, cache: CacheStore) -> "ChatSessionManager":
        return cls(api, cache)

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._state.messages)

    @property
    def session_id(self) -> Optional[str]:
        return self._state.session_id

    @property
    def is_sending(self) -> bool:
        return self._sending

    def subscribe(self, listener: MessageListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def load(self) -> ChatSessionState:
        self._state = self.cache.load_chat(self.key)
        return self._state

    async def aload(self) -> ChatSessionState:
        self._state = await asyncio.to_thread(self.cache.load_chat, self.key)
        return self._state

    def set_transcript_context(self, transcript: Optional[str]) -> None:
        self._transcript_context = transcript or None

    def reset(self) -> None:
        self._state = ChatSessionState()
        self._transcript_context = None
        self.cache.delete(self.key)

    def build_outgoing(self, text: str) -> Tuple[str, Optional[bool]]:
        """Message body and ``useGlobalScope`` flag for the next turn.

        Only the first turn of a session (no handle yet) is decorated: with the
        transcript for a recording, with the corpus directive for global chat.
        """

        first_turn = self._state.session_id is None
        if self.scope is ChatScope.GLOBAL:
            if first_turn:
                return with_global_directive(text), True
            return text, None
        if first_turn and self._transcript_context:
            return with_transcript_context(self._transcript_context, text), False
        return text, False

    async def send(self, text: str) -> Optional[ChatMessage]:
        """Send one user turn and return the assistant message appended for it."""

        text = text.strip()
        if not text:
            return None
        if self._sending:
            raise ChatBusyError("A message is already being sent")
        self._sending = True
        try:
            self._append(ChatMessage(role=ChatRole.USER, text=text))
            await self._persist()
            outgoing, use_global_scope = self.build_outgoing(text)
            try:
                reply = await self.api.chat(
                    outgoing, session_id=self._state.session_id, use_global_scope=use_global_scope
                )
            except ApiError as exc:
                LOGGER.warning("Chat request failed (%s): %s", self.scope.value, exc)
                answer = ChatMessage(role=ChatRole.ASSISTANT, text=f"Error: {exc}")
            else:
                if reply.session_id:
                    self._state.session_id = reply.session_id
                answer = ChatMessage(role=ChatRole.ASSISTANT, text=reply.text)
            self._append(answer)
            await self._persist()
            return answer
        finally:
            self._sending = False

    def _append(self, message: ChatMessage) -> None:
        self._state.messages.append(message)
        for listener in list(self._listeners):
            listener(message)

    async def _persist(self) -> None:
        payload = encode_chat(self._state)
        await asyncio.to_thread(self.cache.write, self.key, payload)


__all__ = ["ChatBusyError", "ChatScope", "ChatSessionManager"]
