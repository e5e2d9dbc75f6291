"""Pytest configuration helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import httpx
import pytest


def _ensure_repo_on_path() -> None:
    """Allow tests to import from repo modules without setting PYTHONPATH."""
    repo_root = Path(__file__).resolve().parents[1]
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()

from mobile.murmur.services.network import ApiClient  # noqa: E402
from mobile.murmur.store.settings_store import ClientSettings  # noqa: E402
from src.memo_core.cache_store import CacheStore  # noqa: E402


@pytest.fixture()
def client_settings(tmp_path) -> ClientSettings:
    recordings = tmp_path / "recordings"
    recordings.mkdir()
    return ClientSettings(
        server_url="http://brain.test",
        recordings_root=str(recordings),
        cache_root=str(recordings),
        reports_dir=str(tmp_path / "reports"),
    )


@pytest.fixture()
def cache(client_settings) -> CacheStore:
    return client_settings.cache_store()


@pytest.fixture()
def make_api(client_settings):
    def _make(handler) -> ApiClient:
        transport = httpx.MockTransport(handler)
        return ApiClient(client_settings, client=httpx.AsyncClient(transport=transport))

    return _make
