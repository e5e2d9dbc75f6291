"""Client orchestrator talking to the real brain service app over ASGI."""

import asyncio
from types import SimpleNamespace

import httpx
import pytest

from mobile.murmur.services.asr import RemoteASRClient
from mobile.murmur.services.network import ApiClient
from mobile.murmur.services.orchestrator import TranscriptionOrchestrator
from mobile.murmur.services.summarizer import SummarizationClient
from src.memo_core.models import SavedTranscript
from src.memo_core.models import TranscriptionState as S

MOCK_TEXT = "[mock transcript for rec1.m4a]"


class NumberedCompletions:
    def __init__(self):
        self.prompts = []

    async def create(self, *, model, messages):
        self.prompts.append(messages[-1]["content"])
        text = f"summary {len(self.prompts)}"
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


class NoFallback:
    async def transcribe(self, identity):
        raise AssertionError("the service is reachable")


@pytest.fixture()
def stack(tmp_path, client_settings, cache):
    from src.api.app import create_app
    from src.api.deps.services import get_brain_service
    from src.api.services.brain_service import BrainService
    from src.api.settings import ProxySettings, get_settings

    get_settings.cache_clear()  # type: ignore
    settings = ProxySettings(
        data_dir=str(tmp_path / "data"),
        knowledge_dir=str(tmp_path / "knowledge"),
        shared_recordings_dir=str(tmp_path / "shared"),
        shared_roots=[],
        whisper_mock_transcriber=True,
    )
    completions = NumberedCompletions()
    brain = BrainService(settings, client=SimpleNamespace(chat=SimpleNamespace(completions=completions)))
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_brain_service] = lambda: brain

    identity = f"{client_settings.recordings_root}/rec1.m4a"
    (tmp_path / "recordings" / "rec1.m4a").write_bytes(b"\x00" * 64)
    cache.save_transcript(identity, SavedTranscript(full_text="short"))

    api = ApiClient(client_settings, client=httpx.AsyncClient(transport=httpx.ASGITransport(app=app)))
    orch = TranscriptionOrchestrator(
        identity,
        cache=cache,
        remote=RemoteASRClient(api),
        fallback=NoFallback(),
        summarizer=SummarizationClient(api),
        duration_probe=lambda _identity: 60.0,
        progress_interval=0,
    )
    return orch, api, completions, identity


def test_continue_gets_a_fresh_service_transcript(stack, cache):
    orch, api, completions, identity = stack

    async def run():
        loaded = await orch.start()
        await orch.drain()
        continued = await orch.continue_transcription()
        await orch.drain()
        await api.aclose()
        return loaded, continued, orch.snapshot()

    loaded, continued, final = asyncio.run(run())
    assert loaded.state is S.LOADED
    assert loaded.incomplete is True
    assert continued.state is S.COMPLETE
    assert continued.full_text == MOCK_TEXT
    assert cache.load_transcript(identity).full_text == MOCK_TEXT
    assert len(completions.prompts) == 2
    assert MOCK_TEXT in completions.prompts[1]
    assert final.summary == "summary 2"
    assert cache.load_summary(identity) == "summary 2"


def test_retranscribe_is_not_answered_from_the_old_summary(stack, cache):
    orch, api, completions, identity = stack

    async def run():
        await orch.start()
        await orch.drain()
        await orch.retranscribe()
        await orch.drain()
        await api.aclose()
        return orch.snapshot()

    final = asyncio.run(run())
    assert final.full_text == MOCK_TEXT
    assert "short" in completions.prompts[0]
    assert MOCK_TEXT in completions.prompts[1]
    assert final.summary == "summary 2"
    assert cache.load_summary(identity) == "summary 2"
