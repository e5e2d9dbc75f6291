"""Sidecar artifact storage keyed by recording identity."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional

from .codec import decode_chat, decode_transcript, encode_chat, encode_transcript
from .models import ChatSessionState, SavedTranscript

LOGGER = logging.getLogger("murmur.cache")

TRANSCRIPT_SUFFIX = ".transcript"
SUMMARY_SUFFIX = ".summary"
CHAT_SUFFIX = ".chat"
GLOBAL_CHAT_NAME = "global.chat"


class CacheStore:
    """Byte-blob persistence next to each recording.

    Keys are derived from the recording path by swapping its extension, so a
    transcript for ``/rec/a.m4a`` lives at ``/rec/a.transcript``. Summaries for
    recordings under one of ``shared_roots`` go to ``shared_summary_dir``
    instead, where other processes can find them.
    """

    def __init__(
        self,
        cache_root: Path | str,
        *,
        shared_roots: Iterable[Path | str] = (),
        shared_summary_dir: Path | str | None = None,
    ) -> None:
        self.cache_root = Path(cache_root)
        self.shared_roots = [Path(root) for root in shared_roots]
        self.shared_summary_dir = Path(shared_summary_dir) if shared_summary_dir else None

    # key derivation

    def transcript_key(self, identity: str) -> Path:
        return _sidecar(identity, TRANSCRIPT_SUFFIX)

    def summary_key(self, identity: str) -> Path:
        path = Path(identity)
        if self.shared_summary_dir is not None and self._is_shared(path):
            return self.shared_summary_dir / f"{path.stem}{SUMMARY_SUFFIX}"
        return _sidecar(identity, SUMMARY_SUFFIX)

    def chat_key(self, identity: str) -> Path:
        return _sidecar(identity, CHAT_SUFFIX)

    def global_chat_key(self) -> Path:
        return self.cache_root / GLOBAL_CHAT_NAME

    def _is_shared(self, path: Path) -> bool:
        for root in self.shared_roots:
            try:
                path.relative_to(root)
            except ValueError:
                continue
            return True
        return False

    # raw blobs

    def write(self, key: Path, value: bytes | str) -> None:
        data = value.encode("utf-8") if isinstance(value, str) else value
        key.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{key.name}.", suffix=".tmp", dir=str(key.parent))
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, key)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def read(self, key: Path) -> Optional[bytes]:
        try:
            return key.read_bytes()
        except FileNotFoundError:
            return None

    def delete(self, key: Path) -> None:
        key.unlink(missing_ok=True)

    def exists(self, key: Path) -> bool:
        return key.is_file()

    # typed helpers

    def load_transcript(self, identity: str) -> Optional[SavedTranscript]:
        raw = self.read(self.transcript_key(identity))
        if raw is None:
            return None
        saved = decode_transcript(raw)
        if saved is None:
            LOGGER.warning("Ignoring unreadable transcript cache for %s", identity)
        return saved

    def save_transcript(self, identity: str, saved: SavedTranscript) -> None:
        self.write(self.transcript_key(identity), encode_transcript(saved))

    def load_summary(self, identity: str) -> Optional[str]:
        raw = self.read(self.summary_key(identity))
        if raw is None:
            return None
        text = raw.decode("utf-8", errors="replace").strip()
        return text or None

    def save_summary(self, identity: str, summary: str) -> None:
        self.write(self.summary_key(identity), summary)

    def load_chat(self, key: Path) -> ChatSessionState:
        raw = self.read(key)
        if raw is None:
            return ChatSessionState()
        return decode_chat(raw)

    def save_chat(self, key: Path, state: ChatSessionState) -> None:
        self.write(key, encode_chat(state))


def _sidecar(identity: str, suffix: str) -> Path:
    return Path(identity).with_suffix(suffix)


__all__ = ["CacheStore"]
