"""Brain service settings resolved from the environment."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import List

from pydantic import BaseModel, Field


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


class ProxySettings(BaseModel):
    app_name: str = Field(default="Murmur Brain")
    version: str = Field(default="1.0.0")
    data_dir: str = Field(default=os.getenv("DATA_DIR", "data"))
    knowledge_dir: str = Field(default=os.getenv("KNOWLEDGE_DIR", "data/knowledge"))
    shared_recordings_dir: str = Field(
        default=os.getenv("SHARED_RECORDINGS_DIR", "/tmp/murmur-recordings")
    )
    shared_roots: List[str] = Field(default_factory=lambda: _split_paths("SHARED_ROOTS"))
    whisper_model: str = Field(default=os.getenv("WHISPER_MODEL", "large-v3"))
    whisper_device: str = Field(default=os.getenv("WHISPER_DEVICE", "cpu"))
    whisper_compute_type: str = Field(default=os.getenv("WHISPER_COMPUTE_TYPE", "int8"))
    whisper_language: str | None = Field(default=os.getenv("WHISPER_LANGUAGE"))
    whisper_mock_transcriber: bool = Field(default=_flag("WHISPER_USE_MOCK"))
    openai_api_key: str | None = Field(default=os.getenv("OPENAI_API_KEY"))
    openai_base_url: str | None = Field(default=os.getenv("OPENAI_BASE_URL"))
    openai_chat_model: str = Field(default=os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini"))
    llm_timeout_sec: float = Field(default=float(os.getenv("LLM_TIMEOUT_SEC", "120")))
    knowledge_max_chars: int = Field(default=int(os.getenv("KNOWLEDGE_MAX_CHARS", "60000")))


def _split_paths(name: str) -> List[str]:
    raw = os.getenv(name) or ""
    return [item.strip() for item in raw.split(os.pathsep) if item.strip()]


@lru_cache()
def get_settings() -> ProxySettings:
    return ProxySettings()
