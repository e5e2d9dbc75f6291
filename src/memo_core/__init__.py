"""Shared models, codecs and cache layout for the client and the brain service."""

from .cache_store import CacheStore
from .models import SavedTranscript, TranscriptSegment, TranscriptionState

__all__ = ["CacheStore", "SavedTranscript", "TranscriptSegment", "TranscriptionState"]
