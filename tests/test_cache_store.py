from pathlib import Path

from src.memo_core.cache_store import CacheStore
from src.memo_core.models import ChatMessage, ChatRole, ChatSessionState, SavedTranscript


def test_keys_swap_the_extension(tmp_path):
    store = CacheStore(tmp_path)
    identity = str(tmp_path / "rec" / "2026-10-18 memo.m4a")
    assert store.transcript_key(identity) == tmp_path / "rec" / "2026-10-18 memo.transcript"
    assert store.summary_key(identity) == tmp_path / "rec" / "2026-10-18 memo.summary"
    assert store.chat_key(identity) == tmp_path / "rec" / "2026-10-18 memo.chat"
    assert store.global_chat_key() == tmp_path / "global.chat"


def test_shared_recordings_put_summaries_in_shared_dir(tmp_path):
    shared_root = tmp_path / "sandbox"
    shared_dir = tmp_path / "shared"
    store = CacheStore(tmp_path, shared_roots=[shared_root], shared_summary_dir=shared_dir)

    inside = str(shared_root / "deep" / "memo.m4a")
    outside = str(tmp_path / "other" / "memo.m4a")
    assert store.summary_key(inside) == shared_dir / "memo.summary"
    assert store.transcript_key(inside) == shared_root / "deep" / "memo.transcript"
    assert store.summary_key(outside) == tmp_path / "other" / "memo.summary"


def test_write_read_delete(tmp_path):
    store = CacheStore(tmp_path)
    key = tmp_path / "nested" / "a.summary"
    assert store.read(key) is None

    store.write(key, "first")
    store.write(key, b"second")
    assert store.read(key) == b"second"
    assert [p.name for p in key.parent.iterdir()] == ["a.summary"]

    store.delete(key)
    store.delete(key)
    assert not store.exists(key)


def test_transcript_helpers(tmp_path):
    store = CacheStore(tmp_path)
    identity = str(tmp_path / "memo.m4a")
    assert store.load_transcript(identity) is None

    store.save_transcript(identity, SavedTranscript(full_text="hello world"))
    assert store.load_transcript(identity) == SavedTranscript(full_text="hello world")

    Path(store.transcript_key(identity)).write_text("legacy text", encoding="utf-8")
    assert store.load_transcript(identity).full_text == "legacy text"


def test_summary_helpers_ignore_blank(tmp_path):
    store = CacheStore(tmp_path)
    identity = str(tmp_path / "memo.m4a")
    store.write(store.summary_key(identity), "   \n")
    assert store.load_summary(identity) is None
    store.save_summary(identity, "- point")
    assert store.load_summary(identity) == "- point"


def test_chat_helpers(tmp_path):
    store = CacheStore(tmp_path)
    key = store.global_chat_key()
    assert store.load_chat(key) == ChatSessionState()
    state = ChatSessionState(messages=[ChatMessage(role=ChatRole.USER, text="hi")], session_id="s1")
    store.save_chat(key, state)
    assert store.load_chat(key) == state
