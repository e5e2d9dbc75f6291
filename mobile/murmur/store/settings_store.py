"""Persistent client settings: service URL, storage roots and tunables."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List

from src.memo_core.cache_store import CacheStore


@dataclass(slots=True)
class ClientSettings:
    server_url: str = "http://127.0.0.1:19001"
    recordings_root: str = "recordings"
    cache_root: str = "recordings"
    reports_dir: str = "reports"
    shared_roots: List[str] = field(default_factory=list)
    shared_summary_dir: str = ""
    transcribe_timeout: float = 300.0
    request_timeout: float = 120.0
    completeness_threshold: float = 1.0
    fallback_model: str = "small"
    fallback_language: str = ""

    def cache_store(self) -> CacheStore:
        return CacheStore(
            self.cache_root,
            shared_roots=self.shared_roots,
            shared_summary_dir=self.shared_summary_dir or None,
        )


class SettingsStore:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._settings = self._load()

    def _load(self) -> ClientSettings:
        settings = ClientSettings()
        if not self.path.exists():
            return settings
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            raw = {}
        if not isinstance(raw, dict):
            raw = {}
        for key, value in raw.items():
            self._assign(settings, key, value)
        return settings

    def get(self) -> ClientSettings:
        return self._settings

    def update(self, **kwargs) -> ClientSettings:
        for key, value in kwargs.items():
            self._assign(self._settings, key, value)
        self._persist()
        return self._settings

    @staticmethod
    def _assign(settings: ClientSettings, key: str, value) -> None:
        if not hasattr(settings, key):
            return
        current = getattr(settings, key)
        try:
            if isinstance(current, float):
                setattr(settings, key, float(value))
            elif isinstance(current, list):
                if isinstance(value, str):
                    value = value.split(",")
                setattr(settings, key, [str(item).strip() for item in value or [] if str(item).strip()])
            else:
                setattr(settings, key, str(value or ""))
        except (TypeError, ValueError):
            return

    def _persist(self) -> None:
        self.path.write_text(json.dumps(asdict(self._settings), indent=2), encoding="utf-8")


__all__ = ["ClientSettings", "SettingsStore"]
